import pytest
from fastapi import HTTPException
from starlette.requests import Request

from config import settings
from services import otp
from services.errors import ValidationError
from utils.rate_limit import RateLimiter
from utils.ttl_store import InMemoryTTLStore


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store(clock):
    return InMemoryTTLStore(clock=clock, sweep_every=1000)


class TestInMemoryTTLStore:
    def test_expiry(self, store, clock):
        store.set("k", "v", 10)
        assert store.get("k") == "v"
        assert store.ttl("k") == pytest.approx(10)

        clock.advance(10)
        assert store.get("k") is None
        assert store.ttl("k") is None

    def test_incr_keeps_window(self, store, clock):
        assert store.incr("hits", 60) == 1
        clock.advance(30)
        assert store.incr("hits", 60) == 2
        clock.advance(30)
        assert store.incr("hits", 60) == 1

    def test_sweep_drops_expired_keys(self, store, clock):
        store.set("a", 1, 5)
        store.set("b", 2, 50)
        clock.advance(10)
        assert store.sweep() == 1
        assert len(store) == 1

    def test_delete(self, store):
        store.set("a", 1, 5)
        store.delete("a")
        store.delete("missing")
        assert store.get("a") is None


class TestOtp:
    def test_generate_and_verify(self, store):
        code = otp.generate_otp(store, "Buyer@Example.com")
        assert len(code) == 6 and code.isdigit()

        otp.verify_otp(store, "buyer@example.com", code)

        with pytest.raises(ValidationError, match="not found or expired"):
            otp.verify_otp(store, "buyer@example.com", code)

    def test_resend_cooldown(self, store, clock):
        otp.generate_otp(store, "a@example.com")
        with pytest.raises(ValidationError, match="Please wait"):
            otp.generate_otp(store, "a@example.com")

        clock.advance(settings.OTP_COOLDOWN_SECONDS)
        otp.generate_otp(store, "a@example.com")

    def test_expiry(self, store, clock):
        code = otp.generate_otp(store, "a@example.com")
        clock.advance(settings.OTP_EXPIRY_MINUTES * 60)
        with pytest.raises(ValidationError, match="not found or expired"):
            otp.verify_otp(store, "a@example.com", code)

    def test_attempt_limit(self, store):
        code = otp.generate_otp(store, "a@example.com")
        wrong = "000000" if code != "000000" else "111111"

        for _ in range(settings.OTP_MAX_ATTEMPTS - 1):
            with pytest.raises(ValidationError, match="Invalid OTP"):
                otp.verify_otp(store, "a@example.com", wrong)
        with pytest.raises(ValidationError, match="Too many incorrect attempts"):
            otp.verify_otp(store, "a@example.com", wrong)

        # The correct code no longer works either
        with pytest.raises(ValidationError, match="not found or expired"):
            otp.verify_otp(store, "a@example.com", code)


def _request(ip="10.0.0.1"):
    return Request({"type": "http", "method": "POST", "path": "/login", "headers": [], "client": (ip, 1234)})


class TestRateLimiter:
    def test_blocks_after_limit(self, store, clock):
        limiter = RateLimiter(max_requests=2, window_seconds=60, scope="test")
        limiter(_request(), store)
        limiter(_request(), store)

        with pytest.raises(HTTPException) as exc:
            limiter(_request(), store)
        assert exc.value.status_code == 429
        assert "Retry-After" in exc.value.headers

        # Other clients have their own window
        limiter(_request("10.0.0.2"), store)

        clock.advance(60)
        limiter(_request(), store)
