from __future__ import annotations

from typing import BinaryIO, Optional

from .constants import BLOCK_SIZE, FOOTER_BLOCKS, ZERO_BLOCK
from .errors import ArchiveIOError, FormatError


def content_blocks(size: int) -> int:
    """Number of blocks holding ``size`` content bytes."""
    return (size + BLOCK_SIZE - 1) // BLOCK_SIZE


def read_block(f: BinaryIO, *, strict: bool = False, path: Optional[str] = None) -> Optional[bytes]:
    """Read the next block, or return None at end-of-file.

    A short trailing block counts as end-of-file unless ``strict`` is set.
    """
    try:
        data = f.read(BLOCK_SIZE)
    except OSError as exc:
        raise ArchiveIOError.wrap(exc, "read", path) from exc
    if len(data) == BLOCK_SIZE:
        return data
    if data and strict:
        raise FormatError(f"Trailing partial block of {len(data)} bytes", path)
    return None


def write_block(f: BinaryIO, block: bytes, path: Optional[str] = None) -> None:
    try:
        f.write(block)
    except OSError as exc:
        raise ArchiveIOError.wrap(exc, "write to", path) from exc


def _read_full(src: BinaryIO, n: int, path: Optional[str]) -> bytes:
    buf = b""
    while len(buf) < n:
        try:
            more = src.read(n - len(buf))
        except OSError as exc:
            raise ArchiveIOError.wrap(exc, "read", path) from exc
        if not more:
            break
        buf += more
    return buf


def write_content(
    dst: BinaryIO,
    src: BinaryIO,
    size: int,
    *,
    src_path: Optional[str] = None,
    dst_path: Optional[str] = None,
) -> None:
    """Copy exactly ``size`` bytes from ``src`` as whole blocks.

    Only the final block is zero-padded. Bytes past ``size`` (a file that
    grew after its header was built) are left unread.
    """
    remaining = size
    while remaining > 0:
        want = min(BLOCK_SIZE, remaining)
        chunk = _read_full(src, want, src_path)
        if len(chunk) < want:
            missing = remaining - len(chunk)
            raise ArchiveIOError(f"{src_path} shrank while being archived ({missing} bytes missing)", src_path)
        remaining -= want
        write_block(dst, chunk.ljust(BLOCK_SIZE, b"\x00"), dst_path)


def copy_content(
    src: BinaryIO,
    dst: BinaryIO,
    size: int,
    *,
    src_path: Optional[str] = None,
    dst_path: Optional[str] = None,
) -> int:
    """Copy a member's content blocks from ``src``, writing only the first ``size`` bytes.

    Padding in the final block is read and discarded.
    """
    remaining = size
    for _ in range(content_blocks(size)):
        block = _read_full(src, BLOCK_SIZE, src_path)
        if len(block) != BLOCK_SIZE:
            raise FormatError(f"Archive ends inside member content ({remaining} bytes missing)", src_path)
        take = min(remaining, BLOCK_SIZE)
        try:
            dst.write(block[:take])
        except OSError as exc:
            raise ArchiveIOError.wrap(exc, "write to", dst_path) from exc
        remaining -= take
    return size


def write_footer(f: BinaryIO, path: Optional[str] = None) -> None:
    """Write the end-of-archive marker: two all-zero blocks."""
    for _ in range(FOOTER_BLOCKS):
        write_block(f, ZERO_BLOCK, path)
