# inventory_admin/services/admin_repository.py
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from inventory_admin.core.clock import Clock, utc_now
from inventory_admin.core.security import hash_password, normalize_email
from inventory_admin.db.mongo import ADMINS
from inventory_admin.models.admin import ROLE_ADMIN, AdminUpdate
from inventory_admin.models.utils import str_to_objid

AdminId = Union[str, ObjectId]


class DuplicateAdminError(ValueError):
    pass


class AdminRepository:
    """
    Persistence for admin identities. Emails are normalized on every read and
    write, credentials are hashed here and nowhere else.
    """

    def __init__(self, db: AsyncIOMotorDatabase, clock: Clock = utc_now) -> None:
        self.admins = db[ADMINS]
        self.clock = clock

    @staticmethod
    def _oid(admin_id: AdminId) -> Optional[ObjectId]:
        if isinstance(admin_id, ObjectId):
            return admin_id
        return str_to_objid(admin_id)

    async def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return await self.admins.find_one({"email": normalize_email(email)})

    async def find_by_id(
        self, admin_id: AdminId, projection: Optional[List[str]] = None
    ) -> Optional[Dict[str, Any]]:
        oid = self._oid(admin_id)
        if oid is None:
            return None
        return await self.admins.find_one({"_id": oid}, projection)

    async def list_admins(self) -> List[Dict[str, Any]]:
        cursor = self.admins.find({}).sort("created_at", ASCENDING)
        return await cursor.to_list(length=None)

    async def create(
        self, email: str, password: str, name: str, role: str = ROLE_ADMIN
    ) -> Dict[str, Any]:
        """
        Insert a new admin. The password is hashed before anything is written;
        if hashing fails nothing is persisted.
        Raises DuplicateAdminError when the normalized email is taken.
        """
        password_hash = hash_password(password)
        now = self.clock()
        doc = {
            "email": normalize_email(email),
            "password_hash": password_hash,
            "name": name.strip(),
            "role": role,
            "reset_attempts": 0,
            "created_at": now,
            "updated_at": now,
        }
        try:
            res = await self.admins.insert_one(doc)
        except DuplicateKeyError:
            raise DuplicateAdminError("Admin with this email already exists")
        doc["_id"] = res.inserted_id
        return doc

    async def update(self, admin_id: AdminId, changes: AdminUpdate) -> Optional[Dict[str, Any]]:
        """
        Apply the fields explicitly set on `changes`. The stored hash is only
        recomputed when `password` is one of them.
        """
        oid = self._oid(admin_id)
        if oid is None:
            return None

        fields = changes.model_dump(exclude_unset=True)
        update: Dict[str, Any] = {}
        if "password" in fields:
            password = fields.pop("password")
            if password is not None:
                update["password_hash"] = hash_password(password)
        if fields.get("name") is not None:
            update["name"] = fields["name"].strip()

        if not update:
            return await self.admins.find_one({"_id": oid})

        update["updated_at"] = self.clock()
        return await self.admins.find_one_and_update(
            {"_id": oid},
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )

    async def delete(self, admin_id: AdminId) -> bool:
        oid = self._oid(admin_id)
        if oid is None:
            return False
        res = await self.admins.delete_one({"_id": oid})
        return res.deleted_count == 1

    # reset-token state; each method is a single-document atomic write

    async def store_reset_token(
        self,
        admin_id: ObjectId,
        token_hash: str,
        expiry: datetime,
        now: datetime,
        requested_before: Optional[datetime] = None,
    ) -> bool:
        """
        Replace the admin's reset token. With `requested_before`, the write only
        happens when the previous request is older than that instant; False
        means another request got there first.
        """
        query: Dict[str, Any] = {"_id": admin_id}
        if requested_before is not None:
            query["$or"] = [
                {"last_reset_request_at": None},
                {"last_reset_request_at": {"$lte": requested_before}},
            ]
        result = await self.admins.update_one(
            query,
            {
                "$set": {
                    "reset_token": token_hash,
                    "reset_token_expiry": expiry,
                    "reset_attempts": 0,
                    "last_reset_request_at": now,
                    "updated_at": now,
                }
            },
        )
        return result.matched_count == 1

    async def consume_reset_attempt(
        self, token_hash: str, now: datetime, max_attempts: int
    ) -> Optional[Dict[str, Any]]:
        """Count an attempt against a live token that still has attempts left."""
        return await self.admins.find_one_and_update(
            {
                "reset_token": token_hash,
                "reset_token_expiry": {"$gt": now},
                "reset_attempts": {"$lt": max_attempts},
            },
            {"$inc": {"reset_attempts": 1}},
            return_document=ReturnDocument.AFTER,
        )

    async def record_exhausted_attempt(self, token_hash: str, now: datetime) -> Optional[Dict[str, Any]]:
        """Count an attempt against a live token regardless of the ceiling."""
        return await self.admins.find_one_and_update(
            {"reset_token": token_hash, "reset_token_expiry": {"$gt": now}},
            {"$inc": {"reset_attempts": 1}},
            return_document=ReturnDocument.AFTER,
        )

    async def complete_reset(self, admin_id: ObjectId, token_hash: str, new_password: str) -> bool:
        """
        Swap in the new credential and drop the reset token in one write.
        Filtering on the token hash makes a second redemption a no-op.
        """
        password_hash = hash_password(new_password)
        res = await self.admins.update_one(
            {"_id": admin_id, "reset_token": token_hash},
            {
                "$set": {
                    "password_hash": password_hash,
                    "reset_attempts": 0,
                    "updated_at": self.clock(),
                },
                "$unset": {"reset_token": "", "reset_token_expiry": ""},
            },
        )
        return res.modified_count == 1
