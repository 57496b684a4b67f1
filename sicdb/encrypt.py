"""Encryption of SafeInCloud database XML into the ``.db`` payload format."""

from __future__ import annotations

import hashlib
import io
import os
import struct
import zlib
from typing import BinaryIO

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

MAGIC = 0x0505
VERSION = 0x01
KDF_ITERATIONS = 10000
KEY_SIZE = 32
NONCE_SIZE = 16
SALT_SIZE = 16
BLOCK_SIZE = 16
MAX_ARRAY_LENGTH = 255


def write_byte_array(stream: BinaryIO, data: bytes) -> None:
    """Write ``data`` prefixed by its one-byte length."""
    if len(data) > MAX_ARRAY_LENGTH:
        raise ValueError(f"byte array exceeds {MAX_ARRAY_LENGTH} bytes: {len(data)}")
    stream.write(bytes([len(data)]))
    if data:
        stream.write(data)


def pkcs7_pad(data: bytes, block_size: int) -> bytes:
    """Pad ``data`` to a multiple of ``block_size`` using PKCS#7."""
    pad = block_size - len(data) % block_size
    return data + bytes([pad]) * pad


def _cbc_encrypt(key: bytes, nonce: bytes, content: bytes) -> bytes:
    encryptor = Cipher(algorithms.AES(key), modes.CBC(nonce)).encryptor()
    return encryptor.update(content) + encryptor.finalize()


def encrypt(raw: bytes, password: str) -> bytes:
    """Encrypt database XML under ``password``."""
    out = io.BytesIO()
    out.write(struct.pack("<HB", MAGIC, VERSION))

    salt = os.urandom(SALT_SIZE)
    write_byte_array(out, salt)
    outer_nonce = os.urandom(NONCE_SIZE)
    write_byte_array(out, outer_nonce)
    outer_key = hashlib.pbkdf2_hmac(
        "sha1", password.encode("utf-8"), salt, KDF_ITERATIONS, KEY_SIZE
    )
    write_byte_array(out, b"")

    inner_nonce = os.urandom(NONCE_SIZE)
    inner_key = os.urandom(KEY_SIZE)
    key_block = io.BytesIO()
    write_byte_array(key_block, inner_nonce)
    write_byte_array(key_block, inner_key)
    write_byte_array(key_block, b"")
    sealed_keys = _cbc_encrypt(
        outer_key, outer_nonce, pkcs7_pad(key_block.getvalue(), BLOCK_SIZE)
    )
    write_byte_array(out, sealed_keys)

    body = pkcs7_pad(zlib.compress(raw), BLOCK_SIZE)
    out.write(_cbc_encrypt(inner_key, inner_nonce, body))
    return out.getvalue()