from __future__ import annotations

from typing import Iterable, Optional


class TarletError(Exception):
    """Base class for tarlet errors.

    ``path`` names the archive or member file involved, when there is one.
    """

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class MetadataError(TarletError):
    """Stat, owner or group lookup failed while building a header."""


class ArchiveIOError(TarletError):
    """Open/read/write/seek/truncate failure on the archive or a member."""

    def __init__(self, message: str, path: Optional[str] = None, *, phase=None, errno: Optional[int] = None):
        super().__init__(message, path)
        self.phase = phase
        self.errno = errno

    @classmethod
    def wrap(cls, exc: Exception, action: str, path: Optional[str] = None, *, phase=None) -> "ArchiveIOError":
        """Build from an OSError, or from the ValueError ``open`` raises for unusable paths."""
        target = path if path is not None else getattr(exc, "filename", None)
        detail = getattr(exc, "strerror", None) or str(exc)
        return cls(f"Failed to {action} {target}: {detail}", target, phase=phase, errno=getattr(exc, "errno", None))


class FormatError(TarletError):
    """The archive does not have the expected ustar structure."""


class MembershipError(TarletError):
    """Update requested for names that are not in the archive."""

    def __init__(self, missing: Iterable[str], path: Optional[str] = None):
        self.missing = list(missing)
        names = ", ".join(self.missing)
        super().__init__(f"Not present in archive: {names}", path)
