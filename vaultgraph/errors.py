"""Errors raised by vault operations.

All of them derive from ValueError so the outer layers can report any of them
as a single invalid-request failure with a descriptive message.
"""


class VaultError(ValueError):
    """Base class for vault operation failures."""


class InvalidPathError(VaultError):
    """A path resolves outside the vault root."""


class NotFoundError(VaultError):
    """An expected note or template does not exist."""


class AlreadyExistsError(VaultError):
    """A note would be created over an existing file without overwrite."""


class InvalidArgumentError(VaultError):
    """An argument is out of range or malformed."""
