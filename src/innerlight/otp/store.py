"""In-memory OTP store with expiry and a background sweep."""

from __future__ import annotations

import asyncio
import logging
import re
import secrets
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from innerlight.otp.errors import ExpiredError, MismatchError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# OTP validity period in seconds
OTP_TTL_SECONDS = 300  # 5 minutes
SWEEP_INTERVAL_SECONDS = 60

PHONE_PATTERN = re.compile(r"[0-9]{10}")


@dataclass(frozen=True)
class PendingCode:
    """An issued, not yet consumed code for one phone number."""

    phone: str
    code: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


def is_valid_phone(phone: object) -> bool:
    """Return ``True`` if *phone* is a string of exactly 10 ASCII digits."""
    return isinstance(phone, str) and PHONE_PATTERN.fullmatch(phone) is not None


def generate_code() -> str:
    """Return a random 6-digit code in ``[100000, 999999]``."""
    return f"{100000 + secrets.randbelow(900000):06d}"


class OTPStore:
    """Phone → pending-code mapping with lazy and periodic expiry.

    At most one code is pending per phone; issuing again replaces it.
    Every check-then-delete sequence runs under ``self._lock`` so two
    concurrent verifications can never consume the same code twice.

    Expiry uses wall-clock time from *clock*, which tests may replace.
    """

    def __init__(
        self,
        ttl_seconds: float = OTP_TTL_SECONDS,
        sweep_interval: float = SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl = ttl_seconds
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._store: dict[str, PendingCode] = {}
        self._lock = threading.Lock()
        self._sweep_task: asyncio.Task | None = None

    # ── Issuance / verification ──────────────────────────

    def issue(self, phone: str) -> PendingCode:
        """Generate and store a fresh code for *phone*.

        Raises ``ValidationError`` unless *phone* is exactly 10 digits.
        """
        if not is_valid_phone(phone):
            raise ValidationError("Invalid phone number. Must be 10 digits.")
        pending = PendingCode(
            phone=phone,
            code=generate_code(),
            expires_at=self._clock() + self._ttl,
        )
        with self._lock:
            self._store[phone] = pending
        logger.info("OTP issued for %s (expires at %.0f)", phone, pending.expires_at)
        return pending

    def verify(self, phone: str, code: str) -> bool:
        """Consume the pending code for *phone* if *code* matches it.

        Expiry is checked before the comparison, so a stale code is never
        accepted even when it matches.
        """
        with self._lock:
            pending = self._store.get(phone)
            if pending is None:
                raise NotFoundError()
            if pending.is_expired(self._clock()):
                del self._store[phone]
                logger.info("OTP expired for %s", phone)
                raise ExpiredError()
            if not secrets.compare_digest(pending.code.encode(), str(code).encode()):
                logger.info("OTP mismatch for %s", phone)
                raise MismatchError()
            del self._store[phone]
        logger.info("OTP verified for %s", phone)
        return True

    def sweep(self) -> int:
        """Evict every expired entry; return the number removed."""
        now = self._clock()
        with self._lock:
            expired = [p for p, pending in self._store.items() if pending.is_expired(now)]
            for phone in expired:
                del self._store[phone]
        for phone in expired:
            logger.info("Cleaned up expired OTP for %s", phone)
        return len(expired)

    def get(self, phone: str) -> PendingCode | None:
        """Return the live pending code for *phone*, evicting it if expired."""
        with self._lock:
            pending = self._store.get(phone)
            if pending is not None and pending.is_expired(self._clock()):
                del self._store[phone]
                return None
            return pending

    @property
    def pending_count(self) -> int:
        """Number of entries currently held, expired or not."""
        return len(self._store)

    # ── Background sweep lifecycle ───────────────────────

    @property
    def is_running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self.is_running:
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop(), name="otp-sweep")
        logger.debug("OTP sweep started (every %ss)", self._sweep_interval)

    async def stop(self) -> None:
        """Cancel the periodic sweep and wait for it to finish."""
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("OTP sweep stopped")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                self.sweep()
            except Exception:
                logger.exception("OTP sweep failed")
