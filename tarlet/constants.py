# Block geometry
BLOCK_SIZE = 512
FOOTER_BLOCKS = 2
FOOTER_SIZE = BLOCK_SIZE * FOOTER_BLOCKS  # 1024
ZERO_BLOCK = b"\x00" * BLOCK_SIZE

# ustar identification
USTAR_MAGIC = b"ustar\x00"  # 6 bytes: "ustar\0"
USTAR_VERSION = b"00"       # 2 raw bytes, no terminator

# Typeflags
REGTYPE = b"0"
AREGTYPE = b"\x00"   # pre-POSIX regular file
CONTTYPE = b"7"      # contiguous file, treated as regular
REGULAR_TYPES = (REGTYPE, AREGTYPE, CONTTYPE)

# Field bounds
NAME_FIELD_LEN = 100
PREFIX_FIELD_LEN = 155
OWNER_NAME_LEN = 32
CHECKSUM_BLANK = b" " * 8

# Upper bound on names reported by the reader (prefix + "/" + name fits)
MAX_NAME_LEN = 512
