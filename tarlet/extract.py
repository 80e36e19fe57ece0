from __future__ import annotations

import os
from typing import Callable, List, Optional

from .errors import ArchiveIOError
from .reader import ArchiveEntry, ArchiveReader


def output_path(entry: ArchiveEntry, dest: Optional[str] = None) -> str:
    """Where ``entry`` is written: its stored path, optionally rooted under ``dest``."""
    if dest is None:
        return entry.path
    return os.path.join(dest, entry.path.lstrip("/"))


def extract_all(
    archive_path: str,
    *,
    dest: Optional[str] = None,
    strict: bool = False,
    progress: Optional[Callable[[str], None]] = None,
) -> List[str]:
    """Extract every regular-file entry in archive order.

    Each entry's output file is opened with truncation, so when a name
    occurs several times the last occurrence is what remains. Parent
    directories must already exist. Entries of other types are skipped.

    Returns the output paths in the order they were written.
    """
    written: List[str] = []
    with ArchiveReader(archive_path, strict=strict) as reader:
        for entry in reader.entries():
            if not entry.is_regular:
                continue
            out_path = output_path(entry, dest)
            try:
                out = open(out_path, "wb")
            except OSError as exc:
                raise ArchiveIOError.wrap(exc, "open", out_path) from exc
            with out:
                reader.copy_content(entry, out, out_path)
            written.append(out_path)
            if progress is not None:
                progress(out_path)
    return written
