from __future__ import annotations

import grp
import os
import pwd
import re
import stat
import struct
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .constants import (
    BLOCK_SIZE,
    CHECKSUM_BLANK,
    NAME_FIELD_LEN,
    OWNER_NAME_LEN,
    PREFIX_FIELD_LEN,
    REGTYPE,
    USTAR_MAGIC,
    USTAR_VERSION,
    ZERO_BLOCK,
)
from .errors import FormatError, MetadataError


# ustar header layout: (field, width) in on-disk order. Offsets are derived
# from the widths, so this table is the single source of the layout.
HEADER_FIELDS: Tuple[Tuple[str, int], ...] = (
    ("name", NAME_FIELD_LEN),
    ("mode", 8),
    ("uid", 8),
    ("gid", 8),
    ("size", 12),
    ("mtime", 12),
    ("chksum", 8),
    ("typeflag", 1),
    ("linkname", NAME_FIELD_LEN),
    ("magic", 6),
    ("version", 2),
    ("uname", OWNER_NAME_LEN),
    ("gname", OWNER_NAME_LEN),
    ("devmajor", 8),
    ("devminor", 8),
    ("prefix", PREFIX_FIELD_LEN),
    ("padding", 12),
)


def _field_spans(fields: Tuple[Tuple[str, int], ...]) -> Dict[str, Tuple[int, int]]:
    spans: Dict[str, Tuple[int, int]] = {}
    offset = 0
    for name, width in fields:
        spans[name] = (offset, width)
        offset += width
    return spans


FIELD_SPANS = _field_spans(HEADER_FIELDS)
_FIELD_NAMES = tuple(name for name, _ in HEADER_FIELDS)
# "s" fields truncate longer values and NUL-pad shorter ones
_HEADER_STRUCT = struct.Struct("".join(f"{width}s" for _, width in HEADER_FIELDS))

_OCTAL_RE = re.compile(rb"\s*([0-7]+)")


def _octal(value: int, width: int) -> bytes:
    """Zero-padded octal digits filling ``width - 1`` bytes, then a NUL."""
    digits = width - 1
    if value < 0 or value >= 8 ** digits:
        raise ValueError(f"{value} does not fit in {digits} octal digits")
    return ("%0*o" % (digits, value)).encode("ascii") + b"\x00"


def parse_octal(field: bytes) -> Optional[int]:
    """Parse an octal header field the way ``strtol(field, NULL, 8)`` does.

    Leading whitespace is skipped and parsing stops at the first byte that
    is not an octal digit. Returns None when the field holds no digits.
    """
    m = _OCTAL_RE.match(field)
    if m is None:
        return None
    return int(m.group(1), 8)


def _cstr(field: bytes) -> str:
    return os.fsdecode(field.split(b"\x00", 1)[0])


def compute_checksum(block: bytes) -> bytes:
    """Return ``block`` with its checksum field recomputed.

    The field is blanked to eight ASCII spaces, every byte of the block is
    summed as an unsigned value, and the sum is stored as seven octal digits
    followed by a NUL.
    """
    if len(block) != BLOCK_SIZE:
        raise ValueError(f"Header block must be {BLOCK_SIZE} bytes, got {len(block)}")
    off, width = FIELD_SPANS["chksum"]
    buf = bytearray(block)
    buf[off : off + width] = CHECKSUM_BLANK
    buf[off : off + width] = _octal(sum(buf), width)
    return bytes(buf)


def checksum_sums(block: bytes) -> Tuple[int, int]:
    """Return the (unsigned, signed) byte sums of ``block`` with a blank checksum field."""
    off, width = FIELD_SPANS["chksum"]
    buf = bytearray(block)
    buf[off : off + width] = CHECKSUM_BLANK
    unsigned = sum(buf)
    signed = unsigned - 256 * sum(1 for b in buf if b > 127)
    return unsigned, signed


def is_end_marker(block: bytes) -> bool:
    return block == ZERO_BLOCK


@dataclass
class HeaderRecord:
    """Metadata for one archive member, as written into its header block.

    ``name`` is kept as given; ``pack`` stores at most its first 100 bytes
    and never splits it into ``prefix``.
    """

    name: str
    mode: int
    uid: int
    gid: int
    size: int
    mtime: int
    uname: str
    gname: str
    devmajor: int = 0
    devminor: int = 0
    typeflag: bytes = REGTYPE
    prefix: str = ""

    def pack(self) -> bytes:
        """Encode into a 512-byte header block; the checksum is computed last."""
        values = {
            "name": os.fsencode(self.name),
            "typeflag": self.typeflag,
            "magic": USTAR_MAGIC,
            "version": USTAR_VERSION,
            "uname": self.uname.encode("utf-8", "surrogateescape"),
            "gname": self.gname.encode("utf-8", "surrogateescape"),
            "prefix": os.fsencode(self.prefix),
            "chksum": CHECKSUM_BLANK,
        }
        for field in ("mode", "uid", "gid", "size", "mtime", "devmajor", "devminor"):
            _, width = FIELD_SPANS[field]
            try:
                values[field] = _octal(getattr(self, field), width)
            except ValueError as exc:
                raise MetadataError(f"Cannot store {field} of {self.name}: {exc}", self.name) from exc
        raw = _HEADER_STRUCT.pack(*(values.get(name, b"") for name in _FIELD_NAMES))
        return compute_checksum(raw)


@dataclass
class HeaderInfo:
    """Fields decoded from a header block."""

    name: str
    size: int
    typeflag: bytes
    prefix: str
    mode: int
    mtime: int
    uname: str
    gname: str
    checksum: Optional[int]
    checksum_ok: bool
    is_ustar: bool


def build_header(path: str) -> HeaderRecord:
    """Build a fresh header for the regular file at ``path`` from its current metadata."""
    try:
        st = os.stat(path)
    except OSError as exc:
        raise MetadataError(f"Failed to stat {path}: {exc.strerror or exc}", path) from exc
    if not stat.S_ISREG(st.st_mode):
        raise MetadataError(f"Not a regular file: {path}", path)
    try:
        uname = pwd.getpwuid(st.st_uid).pw_name
    except KeyError as exc:
        raise MetadataError(f"Failed to look up owner name of {path} (uid {st.st_uid})", path) from exc
    try:
        gname = grp.getgrgid(st.st_gid).gr_name
    except KeyError as exc:
        raise MetadataError(f"Failed to look up group name of {path} (gid {st.st_gid})", path) from exc
    return HeaderRecord(
        name=path,
        mode=st.st_mode & 0o7777,
        uid=st.st_uid,
        gid=st.st_gid,
        size=st.st_size,
        mtime=int(st.st_mtime),
        uname=uname,
        gname=gname,
        devmajor=os.major(st.st_dev),
        devminor=os.minor(st.st_dev),
    )


def parse_header(block: bytes, *, strict: bool = False, path: Optional[str] = None) -> HeaderInfo:
    """Decode a header block.

    Non-strict decoding accepts any full block: an unparsable size reads as
    0 and a bad checksum is only reported through ``checksum_ok``. With
    ``strict`` those cases, and a missing ``ustar`` magic, raise FormatError.
    """
    if len(block) != BLOCK_SIZE:
        raise FormatError(f"Header block must be {BLOCK_SIZE} bytes, got {len(block)}", path)
    fields = dict(zip(_FIELD_NAMES, _HEADER_STRUCT.unpack(block)))
    size = parse_octal(fields["size"])
    stored = parse_octal(fields["chksum"])
    checksum_ok = stored is not None and stored in checksum_sums(block)
    is_ustar = fields["magic"].startswith(b"ustar")
    name = _cstr(fields["name"])
    if strict:
        if size is None:
            raise FormatError(f"Unparsable size field in header for {name!r}", path)
        if not checksum_ok:
            raise FormatError(f"Header checksum mismatch for {name!r}", path)
        if not is_ustar:
            raise FormatError(f"Missing ustar magic in header for {name!r}", path)
    return HeaderInfo(
        name=name,
        size=size or 0,
        typeflag=fields["typeflag"],
        prefix=_cstr(fields["prefix"]),
        mode=parse_octal(fields["mode"]) or 0,
        mtime=parse_octal(fields["mtime"]) or 0,
        uname=_cstr(fields["uname"]),
        gname=_cstr(fields["gname"]),
        checksum=stored,
        checksum_ok=checksum_ok,
        is_ustar=is_ustar,
    )
