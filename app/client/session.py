"""
Client-side admin session.
Holds the bearer token issued by /api/admin/login and drops it once it expires.
"""
import asyncio
import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class AdminSession:
    """
    Bearer token with a fixed expiry.

    The session logs out on its own: reading the token after expiry clears it,
    and arm_timer() schedules a logout on the running event loop.
    """

    def __init__(
        self,
        on_logout: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.on_logout = on_logout
        self.clock = clock
        self._token: Optional[str] = None
        self._expires_at: Optional[float] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    def start(self, token: str, expires_in: int) -> None:
        self._cancel_timer()
        self._token = token
        self._expires_at = self.clock() + expires_in
        logger.info(f"Admin session started, expires in {expires_in}s")

    @property
    def expires_at(self) -> Optional[float]:
        return self._expires_at

    def seconds_remaining(self) -> float:
        if self._expires_at is None:
            return 0.0
        return max(0.0, self._expires_at - self.clock())

    def is_expired(self) -> bool:
        return self._token is None or self.seconds_remaining() <= 0

    @property
    def is_authenticated(self) -> bool:
        return self.get_token() is not None

    def get_token(self) -> Optional[str]:
        """Current token, or None. An expired token is discarded with a logout."""
        if self._token is None:
            return None
        if self.is_expired():
            self.logout("expired")
            return None
        return self._token

    def authorization_header(self) -> dict:
        token = self.get_token()
        return {"Authorization": f"Bearer {token}"} if token else {}

    def arm_timer(self) -> None:
        """Schedule a proactive logout at expiry on the running loop."""
        self._cancel_timer()
        if self._token is None:
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.seconds_remaining(), self._expire)

    def _expire(self) -> None:
        self._timer = None
        if self._token is not None:
            self.logout("expired")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def logout(self, reason: str = "logout") -> None:
        was_active = self._token is not None
        self._cancel_timer()
        self._token = None
        self._expires_at = None
        if was_active:
            logger.info(f"Admin session ended ({reason})")
            if self.on_logout:
                self.on_logout(reason)
