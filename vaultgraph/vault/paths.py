"""Vault-relative path resolution and containment checks."""

from pathlib import Path

from ..errors import InvalidPathError


def is_within(root: Path, path: Path) -> bool:
    """True if `path` resolves to `root` or somewhere below it."""
    root = root.resolve()
    try:
        path.resolve().relative_to(root)
    except ValueError:
        return False
    return True


def resolve_in_vault(root: Path, rel_path: str | Path, *, what: str = "path") -> Path:
    """Resolve `rel_path` against the vault root, rejecting escapes.

    Raises:
        InvalidPathError: if the result lies outside the vault root
    """
    candidate = (root / rel_path).resolve()
    if not is_within(root, candidate):
        raise InvalidPathError(f"Invalid {what}: '{rel_path}' resolves outside the vault")
    return candidate


def relative_posix(root: Path, path: Path) -> str:
    """Vault-relative path with forward slashes."""
    return path.resolve().relative_to(root.resolve()).as_posix()
