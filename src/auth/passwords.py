"""One-way salted password verifier."""

import bcrypt as _bcrypt

from src.config.settings import get_settings


def hash_password(password: str) -> str:
    salt = _bcrypt.gensalt(rounds=get_settings().BCRYPT_ROUNDS)
    return _bcrypt.hashpw(password.encode(), salt).decode()


def verify_password(password: str, password_hash: str) -> bool:
    return _bcrypt.checkpw(password.encode(), password_hash.encode())
