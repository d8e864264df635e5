"""
Tutorchat FastAPI application entry point.

Run with: uvicorn tutorchat.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tutorchat.config import get_settings, sanitize_error
from tutorchat.database.connection import close_mongo_connection, connect_to_mongo, get_database
from tutorchat.errors import ChatError, InvalidArgumentError, UnavailableError
from tutorchat.repositories.conversation_repository import ConversationRepository
from tutorchat.routers.conversations import router as conversations_router
from tutorchat.routers.messages import router as messages_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):

    await connect_to_mongo()
    try:
        try:
            await ConversationRepository(get_database()).ensure_indexes()
        except UnavailableError:
            logger.warning("Could not create indexes at startup; MongoDB unreachable")
        yield
    finally:
        await close_mongo_connection()


app = FastAPI(title=settings.app_name, description="Student/teacher conversation API", lifespan=lifespan)


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
    detail = exc.message
    if isinstance(exc, UnavailableError):
        detail = sanitize_error(exc, generic_message="Service temporarily unavailable.")
    return JSONResponse(status_code=exc.status_code, content={"kind": exc.kind, "detail": detail})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return JSONResponse(
        status_code=InvalidArgumentError.status_code,
        content={"kind": InvalidArgumentError.kind, "detail": problems},
    )


app.include_router(conversations_router)
app.include_router(messages_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}
