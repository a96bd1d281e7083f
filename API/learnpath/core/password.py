"""Account password hashing.

pbkdf2_sha256 hashes the whole input, so every character of a password counts.
"""
from passlib.context import CryptContext

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 128

password_hasher = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(plain: str) -> str:
    return password_hasher.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    if not plain or not hashed:
        return False
    return password_hasher.verify(plain, hashed)
