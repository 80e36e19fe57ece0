from __future__ import annotations

from typing import Callable, Iterable, Optional

from .append import append_to_archive
from .errors import MembershipError
from .reader import list_members


def update_archive(
    archive_path: str,
    members: Iterable[str],
    *,
    safe: bool = False,
    strict: bool = False,
    progress: Optional[Callable[[str], None]] = None,
) -> None:
    """Append new versions of ``members``, all of which must already be in the archive.

    If any name is missing, MembershipError is raised before anything is
    written. Past that check the append itself behaves as
    ``append_to_archive`` (not atomic unless ``safe``).
    """
    members = list(members)
    present = set(list_members(archive_path, strict=strict))
    missing = [m for m in dict.fromkeys(members) if m not in present]
    if missing:
        raise MembershipError(missing, archive_path)
    append_to_archive(archive_path, members, safe=safe, progress=progress)
