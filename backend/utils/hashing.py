# utils/hashing.py
import hashlib
import hmac

from passlib.context import CryptContext

from config import settings

# Password hashing context
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# KYC identifiers: keyed one-way hash, deterministic so duplicates can be detected
def hash_identifier(value: str) -> str:
    normalized = "".join(value.split()).upper()
    return hmac.new(
        settings.KYC_HASH_SECRET.encode("utf-8"),
        normalized.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def last4(value: str) -> str:
    normalized = "".join(value.split()).upper()
    return normalized[-4:]
