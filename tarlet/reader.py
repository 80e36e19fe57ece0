from __future__ import annotations

import os
from dataclasses import dataclass
from typing import BinaryIO, Iterator, List, Optional

from .blocks import content_blocks, copy_content, read_block
from .constants import BLOCK_SIZE, MAX_NAME_LEN, REGULAR_TYPES
from .errors import ArchiveIOError, FormatError
from .header import is_end_marker, parse_header


@dataclass
class ArchiveEntry:
    name: str
    size: int
    typeflag: bytes
    prefix: str
    mode: int
    mtime: int
    header_offset: int
    checksum_ok: bool = True

    @property
    def path(self) -> str:
        """Member path as stored: ``prefix/name`` when a prefix was written."""
        full = f"{self.prefix}/{self.name}" if self.prefix else self.name
        return full[:MAX_NAME_LEN]

    @property
    def content_offset(self) -> int:
        return self.header_offset + BLOCK_SIZE

    @property
    def content_blocks(self) -> int:
        return content_blocks(self.size)

    @property
    def next_header_offset(self) -> int:
        return self.content_offset + self.content_blocks * BLOCK_SIZE

    @property
    def is_regular(self) -> bool:
        return self.typeflag in REGULAR_TYPES


class ArchiveReader:
    """Sequential reader over the header blocks of a ustar archive.

    Content blocks are skipped by seeking, never read, unless a caller asks
    for them with ``copy_content``. Only one traversal may be active at a
    time on a reader.
    """

    def __init__(self, path: str, *, strict: bool = False):
        self.path = path
        self.strict = strict
        self.f: Optional[BinaryIO] = None
        self.archive_size = 0

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        try:
            self.f = open(self.path, "rb")
            self.archive_size = os.fstat(self.f.fileno()).st_size
        except (OSError, ValueError) as exc:
            self.close()
            raise ArchiveIOError.wrap(exc, "open", self.path) from exc

    def close(self):
        if self.f is not None:
            f, self.f = self.f, None
            try:
                f.close()
            except OSError as exc:
                raise ArchiveIOError.wrap(exc, "close", self.path) from exc

    def _seek(self, offset: int) -> None:
        assert self.f is not None
        try:
            self.f.seek(offset)
        except OSError as exc:
            raise ArchiveIOError.wrap(exc, "seek in", self.path) from exc

    def _read_block(self) -> Optional[bytes]:
        assert self.f is not None
        return read_block(self.f, strict=self.strict, path=self.path)

    def entries(self) -> Iterator[ArchiveEntry]:
        """Yield every member header from the start of the archive.

        A zero block ends the stream only when the block after it is zero as
        well (or missing). A single stray zero block is skipped and the
        block after it is taken as the next header.
        """
        if self.f is None:
            raise RuntimeError("Archive not open")
        self._seek(0)
        offset = 0
        block = self._read_block()
        while block is not None:
            if is_end_marker(block):
                peeked = self._read_block()
                if peeked is None or is_end_marker(peeked):
                    return
                offset += BLOCK_SIZE
                block = peeked
                continue
            info = parse_header(block, strict=self.strict, path=self.path)
            entry = ArchiveEntry(
                name=info.name,
                size=info.size,
                typeflag=info.typeflag,
                prefix=info.prefix,
                mode=info.mode,
                mtime=info.mtime,
                header_offset=offset,
                checksum_ok=info.checksum_ok,
            )
            offset = entry.next_header_offset
            if self.strict and offset > self.archive_size:
                raise FormatError(f"Archive ends inside content of {entry.path!r}", self.path)
            yield entry
            self._seek(offset)
            block = self._read_block()

    def list(self) -> List[ArchiveEntry]:
        return list(self.entries())

    def contains(self, name: str) -> bool:
        for entry in self.entries():
            if entry.path == name:
                return True
        return False

    def copy_content(self, entry: ArchiveEntry, dst: BinaryIO, dst_path: Optional[str] = None) -> int:
        """Write exactly ``entry.size`` content bytes to ``dst``."""
        if self.f is None:
            raise RuntimeError("Archive not open")
        self._seek(entry.content_offset)
        return copy_content(self.f, dst, entry.size, src_path=self.path, dst_path=dst_path)


def stream_entries(archive_path: str, *, strict: bool = False) -> Iterator[ArchiveEntry]:
    """Lazily yield the entries of ``archive_path``; call again to restart."""
    with ArchiveReader(archive_path, strict=strict) as r:
        yield from r.entries()


def list_members(archive_path: str, *, strict: bool = False) -> List[str]:
    """Member names in archive order, duplicates included."""
    with ArchiveReader(archive_path, strict=strict) as r:
        return [e.path for e in r.entries()]


def contains_member(archive_path: str, name: str, *, strict: bool = False) -> bool:
    """True if an entry named ``name`` occurs in the archive; stops at the first match."""
    with ArchiveReader(archive_path, strict=strict) as r:
        return r.contains(name)
