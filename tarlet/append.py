from __future__ import annotations

import enum
import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .constants import BLOCK_SIZE, FOOTER_SIZE, ZERO_BLOCK
from .errors import ArchiveIOError, FormatError
from .writer import ArchiveWriter


class AppendPhase(enum.Enum):
    """Steps of the in-place append. The archive has no valid footer between
    the end of DROP_FOOTER and the end of WRITE_FOOTER."""

    DROP_FOOTER = "drop footer"
    APPEND_ENTRIES = "append entries"
    WRITE_FOOTER = "write footer"


def footer_offset(archive_path: str) -> int:
    """Return the offset of the end-of-archive marker, checking that it is present.

    Raises FormatError, without modifying anything, when the archive is not
    block-aligned or does not end in two zero blocks.
    """
    try:
        with open(archive_path, "rb") as fh:
            size = fh.seek(0, os.SEEK_END)
            if size < FOOTER_SIZE or size % BLOCK_SIZE:
                raise FormatError(f"{archive_path} is not a block-aligned archive ({size} bytes)", archive_path)
            fh.seek(size - FOOTER_SIZE)
            tail = fh.read(FOOTER_SIZE)
    except (OSError, ValueError) as exc:
        raise ArchiveIOError.wrap(exc, "read", archive_path) from exc
    if tail != ZERO_BLOCK * 2:
        raise FormatError(f"{archive_path} does not end with an end-of-archive marker", archive_path)
    return size - FOOTER_SIZE


def _drop_footer(archive_path: str, end: int) -> None:
    try:
        os.truncate(archive_path, end)
    except OSError as exc:
        raise ArchiveIOError.wrap(exc, "truncate", archive_path) from exc


def _append_in_place(archive_path: str, members: List[str], progress: Optional[Callable[[str], None]]) -> None:
    end = footer_offset(archive_path)
    phase = AppendPhase.DROP_FOOTER
    try:
        _drop_footer(archive_path, end)
        phase = AppendPhase.APPEND_ENTRIES
        with ArchiveWriter(archive_path, append=True) as w:
            for member in members:
                w.add_file(member)
                if progress is not None:
                    progress(member)
            phase = AppendPhase.WRITE_FOOTER
            w.finalize()
    except ArchiveIOError as exc:
        if exc.phase is None:
            exc.phase = phase
        raise


def _append_via_replace(archive_path: str, members: List[str], progress: Optional[Callable[[str], None]]) -> None:
    src = Path(archive_path)
    footer_offset(archive_path)
    try:
        fd, temp_archive = tempfile.mkstemp(prefix=".tarlet-append-", suffix=".tmp", dir=str(src.parent))
        os.close(fd)
    except OSError as exc:
        raise ArchiveIOError.wrap(exc, "create temporary copy of", archive_path) from exc
    temp_path = Path(temp_archive)
    try:
        try:
            shutil.copyfile(archive_path, temp_archive)
            shutil.copymode(archive_path, temp_archive)
        except OSError as exc:
            raise ArchiveIOError.wrap(exc, "copy", archive_path) from exc
        _append_in_place(temp_archive, members, progress)
        try:
            os.replace(temp_archive, archive_path)
        except OSError as exc:
            raise ArchiveIOError.wrap(exc, "replace", archive_path) from exc
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise


def append_to_archive(
    archive_path: str,
    members: Iterable[str],
    *,
    safe: bool = False,
    progress: Optional[Callable[[str], None]] = None,
) -> None:
    """Append ``members`` to an existing archive.

    The footer is truncated away, the new members are written at the end
    and a fresh footer follows. Earlier members are never rewritten, so a
    name that is already present gets a newer version that shadows the old
    one on extraction.

    The in-place protocol is not atomic: a failure after the footer was
    dropped leaves the archive without one (ArchiveIOError.phase tells
    where it stopped). With ``safe`` the phases run on a temporary copy in
    the same directory which then replaces the original, so a failure
    leaves the original untouched.
    """
    members = list(members)
    if safe:
        _append_via_replace(archive_path, members, progress)
    else:
        _append_in_place(archive_path, members, progress)
