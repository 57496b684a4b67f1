import hashlib
import io
import zlib

import pytest
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from sicdb.encrypt import encrypt, pkcs7_pad, write_byte_array

SAMPLE_XML = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<database>\n\t<label id="1" name="Geschäftlich"></label>\n</database>'
).encode()


def _read_array(stream):
    length = stream.read(1)
    if len(length) != 1:
        raise ValueError("truncated payload")
    data = stream.read(length[0])
    if len(data) != length[0]:
        raise ValueError("truncated payload")
    return data


def _cbc_decrypt(key, nonce, content):
    decryptor = Cipher(algorithms.AES(key), modes.CBC(nonce)).decryptor()
    padded = decryptor.update(content) + decryptor.finalize()
    unpadder = padding.PKCS7(128).unpadder()
    return unpadder.update(padded) + unpadder.finalize()


def _decrypt(blob, password):
    stream = io.BytesIO(blob)
    if stream.read(3) != b"\x05\x05\x01":
        raise ValueError("bad header")
    salt = _read_array(stream)
    outer_nonce = _read_array(stream)
    _read_array(stream)
    sealed = _read_array(stream)
    outer_key = hashlib.pbkdf2_hmac("sha1", password.encode(), salt, 10000, 32)
    keys = _cbc_decrypt(outer_key, outer_nonce, sealed)
    if len(keys) != 51 or keys[0] != 16 or keys[17] != 32 or keys[50] != 0:
        raise ValueError("incorrect password")
    inner_nonce, inner_key = keys[1:17], keys[18:50]
    return zlib.decompress(_cbc_decrypt(inner_key, inner_nonce, stream.read()))


def test_encrypt_decrypt_round_trip():
    password = "password"
    assert _decrypt(encrypt(SAMPLE_XML, password), password) == SAMPLE_XML


def test_encrypt_layout():
    password = "password"
    enc = encrypt(b"<database/>", password)
    assert enc[:3] == b"\x05\x05\x01"
    assert enc[3] == 16
    assert enc[20] == 16
    assert enc[37] == 0
    assert enc[38] == 64
    body = enc[39 + 64:]
    assert len(body) > 0
    assert len(body) % 16 == 0


def test_encrypt_uses_fresh_randomness():
    password = "password"
    first = encrypt(b"<database/>", password)
    second = encrypt(b"<database/>", password)
    assert first[:3] == second[:3] == b"\x05\x05\x01"
    assert len(first) == len(second)
    salts_equal = first[4:20] == second[4:20]
    assert salts_equal is False
    assert _decrypt(first, password) == b"<database/>"
    assert _decrypt(second, password) == b"<database/>"


def test_encrypt_wrong_password():
    password = "password"
    enc = encrypt(b"<database/>", password)
    assert enc[:3] == b"\x05\x05\x01"
    assert _decrypt(enc, password) == b"<database/>"
    with pytest.raises(ValueError):
        _decrypt(enc, "secret")


def test_decrypt_corrupted_body_fails():
    password = "password"
    original = encrypt(b"<database/>", password)
    assert _decrypt(original, password) == b"<database/>"
    enc = bytearray(original)
    enc[-1] ^= 0xFF
    assert enc[-1] == original[-1] ^ 0xFF
    with pytest.raises((ValueError, zlib.error)):
        _decrypt(bytes(enc), password)


def test_write_byte_array_too_large():
    with pytest.raises(ValueError, match="255"):
        write_byte_array(io.BytesIO(), bytes(256))


def test_write_byte_array_max_length():
    stream = io.BytesIO()
    write_byte_array(stream, b"\x01" * 255)
    assert stream.getvalue() == b"\xff" + b"\x01" * 255


def test_write_byte_array_empty():
    stream = io.BytesIO()
    write_byte_array(stream, b"")
    assert stream.getvalue() == b"\x00"


def test_write_byte_array_prefixes_length():
    stream = io.BytesIO()
    write_byte_array(stream, b"abc")
    assert stream.getvalue() == b"\x03abc"


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"", b"\x10" * 16),
        (b"abc", b"abc" + b"\x0d" * 13),
        (b"x" * 15, b"x" * 15 + b"\x01"),
        (b"y" * 16, b"y" * 16 + b"\x10" * 16),
    ],
)
def test_pkcs7_pad(data, expected):
    assert pkcs7_pad(data, 16) == expected


def test_pkcs7_pad_other_block_size():
    assert pkcs7_pad(b"abcde", 8) == b"abcde\x03\x03\x03"