# inventory_admin/services/reset_token_service.py
import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from inventory_admin.core.clock import Clock, utc_now
from inventory_admin.core.logger import get_logger
from inventory_admin.core.security import generate_reset_token, hash_reset_token
from inventory_admin.services.admin_repository import AdminRepository

logger = get_logger(__name__)


class TokenStatus(str, enum.Enum):
    VALID = "valid"
    INVALID = "invalid"  # unknown, expired or already used
    EXHAUSTED = "exhausted"


@dataclass
class TokenCheck:
    status: TokenStatus
    admin: Optional[Dict[str, Any]] = None

    @property
    def valid(self) -> bool:
        return self.status is TokenStatus.VALID


class ResetTokenService:
    """
    Single-use password reset tokens.

    Only the sha256 of a token is stored. A token dies when it expires, when
    it has been checked `max_attempts` times, when a newer one is issued for
    the same admin, or when it is redeemed.
    """

    def __init__(
        self,
        repository: AdminRepository,
        ttl: timedelta = timedelta(hours=1),
        max_attempts: int = 5,
        clock: Clock = utc_now,
    ) -> None:
        self.repository = repository
        self.ttl = ttl
        self.max_attempts = max_attempts
        self.clock = clock

    async def issue(
        self, admin: Dict[str, Any], requested_before: Optional[datetime] = None
    ) -> Optional[str]:
        """
        Mint a token for `admin` and return the plaintext for out-of-band delivery.

        When `requested_before` is given, returns None instead if the admin's
        last request is more recent than it.
        """
        token = generate_reset_token()
        now = self.clock()
        stored = await self.repository.store_reset_token(
            admin["_id"], hash_reset_token(token), now + self.ttl, now, requested_before
        )
        if not stored:
            logger.info("Password reset request for admin %s lost to a concurrent one", admin["_id"])
            return None
        logger.info("Password reset token issued for admin %s", admin["_id"])
        return token

    async def validate(self, token: str) -> TokenCheck:
        token_hash = hash_reset_token(token)
        now = self.clock()

        admin = await self.repository.consume_reset_attempt(token_hash, now, self.max_attempts)
        if admin is not None:
            return TokenCheck(TokenStatus.VALID, admin)

        # live token whose attempts are used up: still counted
        admin = await self.repository.record_exhausted_attempt(token_hash, now)
        if admin is not None:
            logger.warning("Reset token attempts exceeded for admin %s", admin["_id"])
            return TokenCheck(TokenStatus.EXHAUSTED, admin)

        return TokenCheck(TokenStatus.INVALID)

    async def redeem(self, token: str, new_password: str) -> TokenCheck:
        check = await self.validate(token)
        if not check.valid:
            return check

        admin = check.admin
        updated = await self.repository.complete_reset(
            admin["_id"], hash_reset_token(token), new_password
        )
        if not updated:
            # redeemed concurrently by another request
            return TokenCheck(TokenStatus.INVALID)

        logger.info("Password reset completed for admin %s", admin["_id"])
        return check
