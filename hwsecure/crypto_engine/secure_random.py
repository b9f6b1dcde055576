import hmac
import os


def secure_random_bytes(length: int) -> bytes:
    if length <= 0:
        raise ValueError("Length must be positive")

    return os.urandom(length)


def secure_compare(a: bytes, b: bytes) -> bool:
    if len(a) != len(b):
        return False
    return hmac.compare_digest(a, b)


def generate_nonce(length: int = 12) -> bytes:
    return secure_random_bytes(length)


def generate_content_key(size: int) -> bytes:
    return secure_random_bytes(size)
