"""
Error types raised while building a site.

Every error is fatal to the build: nothing is written to the output directory
once one of these has been raised.
"""

from typing import Iterable, Optional


class SiteError(Exception):
    """Base class for all build failures."""


class ContentParseError(SiteError):
    """A content file has a missing or malformed front-matter block."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Cannot parse content file {source}: {reason}")


class DuplicatePathError(SiteError):
    """Two content files resolve to the same public path."""

    def __init__(self, path: str, sources: Iterable[str]):
        self.path = path
        self.sources = list(sources)
        super().__init__(
            f"Duplicate content path '{path}' produced by: {', '.join(self.sources)}"
        )


class ConfigError(SiteError):
    """A configuration field is missing or invalid."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid configuration field '{field}': {reason}")


class ThemeMissingError(SiteError):
    """The configured theme could not be found."""

    def __init__(self, theme: str, searched: Optional[Iterable[str]] = None):
        self.theme = theme
        self.searched = list(searched or [])
        message = f"Theme '{theme}' not found"
        if self.searched:
            message += f" (searched: {', '.join(self.searched)})"
        super().__init__(message)


class RenderError(SiteError):
    """A template failed to render or an output file could not be written."""

    def __init__(self, target: str, reason: str):
        self.target = target
        self.reason = reason
        super().__init__(f"Failed to render {target}: {reason}")
