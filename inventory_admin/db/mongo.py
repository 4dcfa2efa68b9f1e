# inventory_admin/db/mongo.py
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from fastapi import Request
from pymongo import ASCENDING, DESCENDING

from inventory_admin.core.config import Settings

ADMINS = "admins"
LOGIN_EVENTS = "login_events"


def create_client(settings: Settings) -> AsyncIOMotorClient:
    return AsyncIOMotorClient(settings.MONGO_URI)


def close_client(client: AsyncIOMotorClient) -> None:
    client.close()


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the indexes the service relies on (idempotent)."""
    admins = db[ADMINS]
    await admins.create_index([("email", ASCENDING)], unique=True)
    await admins.create_index([("reset_token", ASCENDING)], sparse=True)

    events = db[LOGIN_EVENTS]
    await events.create_index([("admin_id", ASCENDING), ("timestamp", DESCENDING)])
    await events.create_index([("email", ASCENDING), ("timestamp", DESCENDING)])
    await events.create_index([("timestamp", DESCENDING)])


def get_db(request: Request) -> AsyncIOMotorDatabase:
    # the handle is created once in the app lifespan and lives on app.state
    return request.app.state.db
