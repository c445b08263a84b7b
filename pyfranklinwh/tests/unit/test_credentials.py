import zlib

from pyfranklinwh.credentials import checksum, digest


def test_digest_is_hex_md5():
    assert digest("password") == "5f4dcc3b5aa765d61d8327deb882cf99"


def test_digest_empty():
    assert digest("") == "d41d8cd98f00b204e9800998ecf8427e"


def test_checksum_crc32_hex():
    # CRC-32 check value
    assert checksum(b"123456789") == "cbf43926"


def test_checksum_not_padded():
    data = b'{"opt":1}'
    assert checksum(data) == "%x" % zlib.crc32(data)
    assert not checksum(b"").startswith("0x")
    assert checksum(b"") == "0"
