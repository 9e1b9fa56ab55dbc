"""
Errors raised while building the blog.

Every error is fatal to the build that raised it. Whether it is also fatal
to the process is decided by the caller (see ``cli.main`` and
``watcher.ChangeWatcher``).
"""

from typing import Optional


class BuildError(Exception):
    """Base class for everything that aborts a build."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.message = message
        self.source = source
        super().__init__(message)

    def __str__(self) -> str:
        if self.source:
            return f"{self.source}: {self.message}"
        return self.message


class MalformedDocument(BuildError):
    """Frontmatter delimiters are missing or the header is not a YAML mapping."""


class MissingField(BuildError):
    """A required frontmatter key is absent."""

    def __init__(self, field: str, source: Optional[str] = None):
        self.field = field
        super().__init__(f"missing required field '{field}'", source)


class InvalidDate(BuildError):
    """A ``date`` value is not in ``YYYY-MM-DD`` form."""

    def __init__(self, value: str, source: Optional[str] = None):
        self.value = value
        super().__init__(f"invalid date {value!r}, expected YYYY-MM-DD", source)


class TypeMismatch(BuildError):
    """A frontmatter value has the wrong type."""

    def __init__(self, field: str, expected: str, value: object, source: Optional[str] = None):
        self.field = field
        self.expected = expected
        self.value = value
        super().__init__(
            f"field '{field}' must be {expected}, got {type(value).__name__} ({value!r})",
            source,
        )


class TemplateError(BuildError):
    """A template is missing, fails to parse or fails to render."""


class FileAccessError(BuildError):
    """Reading a source file or writing an output file failed."""
