# backend/services/otp.py
import secrets

from config import settings
from services.errors import ValidationError
from utils.ttl_store import TTLStore


def _key(identifier: str) -> str:
    return f"otp:{identifier.strip().lower()}"


def _cooldown_key(identifier: str) -> str:
    return f"otp-cooldown:{identifier.strip().lower()}"


def generate_otp(store: TTLStore, identifier: str) -> str:
    """Create and store a fresh 6-digit code. Delivery is up to the caller."""
    wait = store.ttl(_cooldown_key(identifier))
    if wait:
        raise ValidationError(f"Please wait {int(wait) + 1} seconds before requesting a new OTP")

    code = f"{secrets.randbelow(900000) + 100000}"
    store.set(_key(identifier), {"otp": code, "attempts": 0}, settings.OTP_EXPIRY_MINUTES * 60)
    store.set(_cooldown_key(identifier), True, settings.OTP_COOLDOWN_SECONDS)
    return code


def verify_otp(store: TTLStore, identifier: str, code: str) -> None:
    key = _key(identifier)
    stored = store.get(key)
    if stored is None:
        raise ValidationError("OTP not found or expired. Please request a new one.")

    if stored["attempts"] >= settings.OTP_MAX_ATTEMPTS:
        store.delete(key)
        raise ValidationError("Too many incorrect attempts. Please request a new OTP.")

    if not secrets.compare_digest(stored["otp"], str(code)):
        stored["attempts"] += 1
        store.set(key, stored, store.ttl(key) or 0)
        remaining = settings.OTP_MAX_ATTEMPTS - stored["attempts"]
        if remaining <= 0:
            store.delete(key)
            raise ValidationError("Too many incorrect attempts. Please request a new OTP.")
        raise ValidationError(f"Invalid OTP. {remaining} attempt{'' if remaining == 1 else 's'} remaining.")

    store.delete(key)
    store.delete(_cooldown_key(identifier))
