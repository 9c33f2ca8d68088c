import sys

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from tg_companion.config import Settings, get_settings
from tg_companion.logging_config import service_logger as logger
from tg_companion.api.chat import router as chat_router
from tg_companion.api.telegram import router as telegram_router
from tg_companion.services.completion import BACKEND_TIMEOUT, build_backend
from tg_companion.telegram_bot import TelegramClient, register_webhook

VERSION = "0.1.0"

app = FastAPI(
    title="Telegram AI Companion",
    description="Relays Telegram messages and /chat prompts to an OpenAI-compatible backend",
    version=VERSION
)


# Lifecycle events
@app.on_event("startup")
async def startup_event():
    """Create shared clients and register the Telegram webhook."""
    settings = get_settings()
    logger.setLevel(settings.log_level)

    logger.info("[STARTUP] Creating backend and Telegram clients...")
    http_client = httpx.AsyncClient(timeout=BACKEND_TIMEOUT)
    app.state.http_client = http_client
    app.state.backend = build_backend(settings, http_client=http_client)
    app.state.telegram = TelegramClient.from_settings(settings, http_client=http_client)

    await register_webhook(settings)
    logger.info("[STARTUP] Ready")


@app.on_event("shutdown")
async def shutdown_event():
    """Close shared clients."""
    logger.info("[SHUTDOWN] Closing clients...")
    for name in ("backend", "telegram"):
        client = getattr(app.state, name, None)
        if client is not None:
            await client.close()

    http_client = getattr(app.state, "http_client", None)
    if http_client is not None:
        await http_client.aclose()
    logger.info("[SHUTDOWN] Stopped")


# Malformed or incomplete bodies are a client error: 400, not 422
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors())},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"^(http://localhost(:\d+)?|null)$",
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Accept", "Content-Type"],
    max_age=3600,
)


@app.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """Health check endpoint."""
    return {
        "status": "ok",
        "backend": settings.open_ai_api_style,
        "version": VERSION
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Telegram AI Companion",
        "docs": "/docs"
    }


# Include routers
app.include_router(chat_router)
app.include_router(telegram_router)


def run():
    """Entry point: validate configuration, then serve with uvicorn."""
    import uvicorn

    try:
        settings = get_settings()
    except ValidationError as e:
        logger.error(f"Invalid configuration:\n{e}")
        sys.exit(1)

    logger.info(
        f"Server running at {settings.server_host_name}:{settings.server_host_port}"
    )
    uvicorn.run(
        app,
        host=settings.server_host_name,
        port=settings.server_host_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
