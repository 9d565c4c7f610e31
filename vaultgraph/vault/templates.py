"""Note templates with {{variable}} placeholders."""

import re
from datetime import datetime
from pathlib import Path

from ..errors import InvalidPathError, NotFoundError
from ..models import MARKDOWN_SUFFIX, TemplateInfo
from .parser import read_metadata
from .paths import is_within

VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")


def template_variables(content: str) -> list[str]:
    """Distinct placeholder names in order of first use."""
    return list(dict.fromkeys(VARIABLE_PATTERN.findall(content)))


def substitute(template: str, variables: dict) -> str:
    """Replace known {{key}} placeholders; unknown ones are left as-is."""

    def replace(match: re.Match) -> str:
        key = match.group(1)
        return str(variables[key]) if key in variables else match.group(0)

    return VARIABLE_PATTERN.sub(replace, template)


def system_variables(now: datetime | None = None) -> dict[str, str]:
    now = now or datetime.now()
    return {
        "date": now.strftime("%Y-%m-%d"),
        "time": now.strftime("%H:%M:%S"),
        "datetime": now.strftime("%Y-%m-%d %H:%M:%S"),
    }


class TemplateEngine:
    """Lists and renders the Markdown templates of one directory."""

    def __init__(self, templates_dir: Path):
        self.templates_dir = templates_dir

    def list_templates(self) -> list[TemplateInfo]:
        """Describe every template in the directory, sorted by name."""
        if not self.templates_dir.is_dir():
            raise NotFoundError(f"Template directory '{self.templates_dir}' not found")
        try:
            files = sorted(self.templates_dir.glob(f"*{MARKDOWN_SUFFIX}"))
        except OSError as e:
            raise NotFoundError(f"Cannot read template directory '{self.templates_dir}': {e}") from e

        templates = []
        for path in files:
            content = path.read_text(encoding="utf-8")
            metadata, _ = read_metadata(content)
            templates.append(
                TemplateInfo(
                    name=path.stem,
                    path=path,
                    variables=template_variables(content),
                    description=str(metadata.get("description") or "").strip(),
                )
            )
        return templates

    def render(self, name: str, variables: dict, *, now: datetime | None = None) -> str:
        """Render template `name` with `variables` plus date/time/datetime.

        Raises:
            InvalidPathError: if `name` points outside the template directory
            NotFoundError: if the template does not exist
        """
        path = (self.templates_dir / f"{name}{MARKDOWN_SUFFIX}").resolve()
        if not is_within(self.templates_dir, path):
            raise InvalidPathError(f"Invalid template name: '{name}' resolves outside the template directory")
        if not path.is_file():
            raise NotFoundError(f"Template '{name}' not found")

        template = path.read_text(encoding="utf-8")
        return substitute(template, {**variables, **system_variables(now)})
