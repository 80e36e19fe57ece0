from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from tarlet.append import append_to_archive
from tarlet.errors import ArchiveIOError, MembershipError, TarletError
from tarlet.extract import extract_all
from tarlet.reader import list_members
from tarlet.update import update_archive
from tarlet.writer import create_archive


def _progress(verbose: bool, stream=None):
    if not verbose:
        return None

    def _print(name: str) -> None:
        print(name, file=stream or sys.stderr)

    return _print


def cmd_create(archive: str, files: List[str], *, verbose: bool = False) -> bool:
    """Create (or overwrite) ``archive`` holding ``files`` in order."""
    create_archive(archive, files, progress=_progress(verbose))
    return True


def cmd_append(archive: str, files: List[str], *, safe: bool = False, verbose: bool = False) -> bool:
    """Append ``files`` to an existing archive."""
    append_to_archive(archive, files, safe=safe, progress=_progress(verbose))
    return True


def cmd_list(archive: str, *, strict: bool = False) -> bool:
    """Print member names, one per line, in archive order."""
    for name in list_members(archive, strict=strict):
        print(name)
    return True


def cmd_update(archive: str, files: List[str], *, safe: bool = False, strict: bool = False, verbose: bool = False) -> bool:
    """Append new versions of ``files``; every one must already be in the archive."""
    update_archive(archive, files, safe=safe, strict=strict, progress=_progress(verbose))
    return True


def cmd_extract(archive: str, *, outdir: Optional[str] = None, strict: bool = False, verbose: bool = False) -> bool:
    """Extract all members; the last version of a repeated name wins."""
    extract_all(archive, dest=outdir, strict=strict, progress=_progress(verbose, sys.stdout))
    return True


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="tarlet",
        description="Create, list, append to, update and extract ustar archives of regular files",
        epilog="Append and update modify the archive in place unless --safe is given.",
    )
    ops = ap.add_mutually_exclusive_group(required=True)
    ops.add_argument("-c", dest="op", action="store_const", const="create", help="Create a new archive")
    ops.add_argument("-a", dest="op", action="store_const", const="append", help="Append files to an existing archive")
    ops.add_argument("-t", dest="op", action="store_const", const="list", help="List archive contents")
    ops.add_argument("-u", dest="op", action="store_const", const="update", help="Update files already in the archive")
    ops.add_argument("-x", dest="op", action="store_const", const="extract", help="Extract all files")
    ap.add_argument("-f", dest="archive", required=True, metavar="ARCHIVE", help="Archive path")
    ap.add_argument("files", nargs="*", metavar="FILE", help="Member files (create, append, update)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Print each member as it is processed")
    ap.add_argument("-C", dest="outdir", metavar="DIR", help="Extract into DIR instead of the stored paths")
    ap.add_argument("--strict", action="store_true", help="Reject headers with bad checksums or size fields")
    ap.add_argument(
        "--safe",
        action="store_true",
        help="Append/update on a temporary copy and atomically replace the archive",
    )

    args = ap.parse_args(argv)
    if args.op in ("create", "append", "update") and not args.files:
        ap.error(f"{args.op} requires at least one FILE")
    try:
        if args.op == "create":
            cmd_create(args.archive, args.files, verbose=args.verbose)
        elif args.op == "append":
            cmd_append(args.archive, args.files, safe=args.safe, verbose=args.verbose)
        elif args.op == "list":
            cmd_list(args.archive, strict=args.strict)
        elif args.op == "update":
            cmd_update(args.archive, args.files, safe=args.safe, strict=args.strict, verbose=args.verbose)
        elif args.op == "extract":
            cmd_extract(args.archive, outdir=args.outdir, strict=args.strict, verbose=args.verbose)
        else:
            raise RuntimeError("Unknown operation")
    except MembershipError as e:
        print("Error: One or more of the specified files is not already present in archive", file=sys.stderr)
        print(f"  missing: {', '.join(e.missing)}", file=sys.stderr)
        sys.exit(1)
    except ArchiveIOError as e:
        print(f"Error: {e}", file=sys.stderr)
        if e.phase is not None and not args.safe:
            print(
                f"  stopped during '{e.phase.value}'; {args.archive} may be left without an end-of-archive marker",
                file=sys.stderr,
            )
        sys.exit(1)
    except (TarletError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
