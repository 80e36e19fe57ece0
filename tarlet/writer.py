from __future__ import annotations

from typing import BinaryIO, Callable, Iterable, Optional

from .blocks import write_block, write_content, write_footer
from .errors import ArchiveIOError
from .header import HeaderRecord, build_header


class ArchiveWriter:
    """Streaming writer that emits ustar member blocks and the end-of-archive footer.

    With ``append=True`` the archive is opened at end-of-file instead of
    being truncated; the caller is responsible for having removed the old
    footer first (see ``tarlet.append``).
    """

    def __init__(self, out_path: str, *, append: bool = False):
        self.out_path = out_path
        self.append = append
        self.f: Optional[BinaryIO] = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        try:
            self.f = open(self.out_path, "ab" if self.append else "wb")
        except (OSError, ValueError) as exc:
            raise ArchiveIOError.wrap(exc, "open", self.out_path) from exc

    def close(self):
        if self.f is not None:
            f, self.f = self.f, None
            try:
                f.close()
            except OSError as exc:
                raise ArchiveIOError.wrap(exc, "close", self.out_path) from exc

    def add_file(self, fs_path: str) -> HeaderRecord:
        """Write one member: its header block, then its content zero-padded to a block boundary."""
        if self.f is None:
            raise RuntimeError("Archive not open")
        try:
            src = open(fs_path, "rb")
        except (OSError, ValueError) as exc:
            raise ArchiveIOError.wrap(exc, "open", fs_path) from exc
        with src:
            header = build_header(fs_path)
            write_block(self.f, header.pack(), self.out_path)
            write_content(self.f, src, header.size, src_path=fs_path, dst_path=self.out_path)
        return header

    def finalize(self):
        if self.f is None:
            raise RuntimeError("Archive not open")
        write_footer(self.f, self.out_path)
        try:
            self.f.flush()
        except OSError as exc:
            raise ArchiveIOError.wrap(exc, "flush", self.out_path) from exc


def create_archive(
    archive_path: str,
    members: Iterable[str],
    *,
    progress: Optional[Callable[[str], None]] = None,
) -> None:
    """Write a new archive holding ``members`` in order, overwriting any existing file.

    A failure part-way leaves whatever was written so far on disk.
    """
    with ArchiveWriter(archive_path) as w:
        for member in members:
            w.add_file(member)
            if progress is not None:
                progress(member)
        w.finalize()
