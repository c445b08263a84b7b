import hashlib
import zlib


def digest(secret: str) -> str:
    """
    Password representation expected by the relay login endpoint
    (hex MD5 of the ASCII secret).
    """
    return hashlib.md5(secret.encode("ascii")).hexdigest()


def checksum(payload: bytes) -> str:
    # CRC-32 as lowercase hex without padding
    return format(zlib.crc32(payload) & 0xffffffff, 'x')
