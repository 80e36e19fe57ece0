"""
tarlet — a small ustar archive engine for regular files.

Features:

- Byte-exact POSIX ustar headers (checksum, octal fields, "ustar"/"00" magic).
- Create, list, extract, append and update (append only if already present).
- Streaming one block at a time; memory use does not grow with file size.
- Appends are an append-only log: a newer entry for a name shadows older ones
  on extraction. Optional atomic-replace mode for append/update.

Directories, links, device files, sparse files and compression are not
supported.
"""

__version__ = "0.1"

from .append import AppendPhase, append_to_archive
from .errors import ArchiveIOError, FormatError, MembershipError, MetadataError, TarletError
from .extract import extract_all
from .header import HeaderRecord, build_header, compute_checksum, is_end_marker, parse_header
from .reader import ArchiveEntry, ArchiveReader, contains_member, list_members, stream_entries
from .update import update_archive
from .writer import ArchiveWriter, create_archive

__all__ = [
    "AppendPhase",
    "ArchiveEntry",
    "ArchiveIOError",
    "ArchiveReader",
    "ArchiveWriter",
    "FormatError",
    "HeaderRecord",
    "MembershipError",
    "MetadataError",
    "TarletError",
    "append_to_archive",
    "build_header",
    "compute_checksum",
    "contains_member",
    "create_archive",
    "extract_all",
    "is_end_marker",
    "list_members",
    "parse_header",
    "stream_entries",
    "update_archive",
]
