# inventory_admin/services/rate_limiter.py
from datetime import datetime, timedelta
from typing import Any, Dict

from inventory_admin.core.clock import Clock, utc_now


class ResetRateLimiter:
    """
    Per-admin cooldown between password reset requests.

    `check` reads `last_reset_request_at` from an already loaded document.
    `cutoff` is handed to ResetTokenService.issue so the store re-checks the
    cooldown in the same write that records the new request.
    """

    def __init__(self, cooldown: timedelta = timedelta(minutes=20), clock: Clock = utc_now) -> None:
        self.cooldown = cooldown
        self.clock = clock

    def check(self, admin: Dict[str, Any]) -> bool:
        last = admin.get("last_reset_request_at")
        if last is None:
            return True
        return self.clock() - last >= self.cooldown

    def cutoff(self) -> datetime:
        """Latest previous-request time that still allows a new request now."""
        return self.clock() - self.cooldown
