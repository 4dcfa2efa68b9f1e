# inventory_admin/services/login_events.py
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from inventory_admin.core.clock import Clock, utc_now
from inventory_admin.core.logger import get_logger
from inventory_admin.core.security import normalize_email
from inventory_admin.db.mongo import LOGIN_EVENTS

logger = get_logger(__name__)


class LoginEventRecorder:
    """Audit trail of admin login attempts."""

    def __init__(self, db: AsyncIOMotorDatabase, clock: Clock = utc_now) -> None:
        self.events = db[LOGIN_EVENTS]
        self.clock = clock

    async def record(
        self,
        email: str,
        status: str,
        admin: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        failure_reason: Optional[str] = None,
    ) -> None:
        """
        Store one login attempt. A failing write is logged and swallowed so the
        audit trail can never break a login.
        """
        now = self.clock()
        doc: Dict[str, Any] = {
            "admin_id": admin["_id"] if admin else None,
            "email": normalize_email(email),
            "admin_name": (admin or {}).get("name") or "Unknown",
            "timestamp": now,
            "ip_address": ip_address,
            "user_agent": user_agent,
            "status": status,
            "failure_reason": failure_reason,
            "created_at": now,
            "updated_at": now,
        }
        try:
            await self.events.insert_one(doc)
        except Exception:
            logger.exception("Failed to record login event for %s", doc["email"])

    async def recent(self, limit: int = 50) -> List[Dict[str, Any]]:
        cursor = self.events.find({}).sort("timestamp", DESCENDING).limit(limit)
        return await cursor.to_list(length=limit)
