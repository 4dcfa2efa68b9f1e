# inventory_admin/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from inventory_admin.core.config import settings
from inventory_admin.core.logger import get_logger, setup_logging
from inventory_admin.db.mongo import close_client, create_client, ensure_indexes
from inventory_admin.routes.admins import router as admins_router
from inventory_admin.routes.auth import router as auth_router
from inventory_admin.routes.password_reset import router as password_reset_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup: create client, verify connection, make sure indexes exist
    setup_logging(settings.LOG_LEVEL)
    client = create_client(settings)
    app.state.mongo_client = client
    app.state.db = client[settings.MONGO_DB]
    try:
        await client.admin.command("ping")
        await ensure_indexes(app.state.db)
        logger.info("Connected to MongoDB")
    except Exception:
        logger.exception("Mongo ping failed")
    if not settings.JWT_SECRET:
        logger.warning("JWT_SECRET is not set; admin login and protected routes will fail")
    yield
    # shutdown: close client
    close_client(client)
    logger.info("MongoDB connection closed")


app = FastAPI(lifespan=lifespan)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request data", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"message": "Internal server error"}
    )


@app.get("/api/health")
async def health():
    return {"status": "OK"}


app.include_router(auth_router)
app.include_router(password_reset_router)
app.include_router(admins_router)
