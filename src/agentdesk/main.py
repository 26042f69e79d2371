"""AgentDesk

FastAPI application exposing the agent orchestration core: agent turns with
tool dispatch, direct chat with provider fallback, and provider setup status.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import logfire
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from .api.routers import agents_router, chat_router, health_router
from .config import settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - startup and shutdown logic"""
    logfire.info("starting {app_name} v{app_version}", app_name=settings.app_name, app_version=settings.app_version)
    yield
    logfire.info("shutting down {app_name}", app_name=settings.app_name)


logfire.configure(
    token=settings.logfire_token,
    send_to_logfire="if-token-present",
    service_name=settings.app_name,
    service_version=settings.app_version,
    environment=settings.environment,
    console=None if settings.logfire_console else False,
)
logfire.instrument_pydantic_ai()

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description=settings.app_description,
    version=settings.app_version,
    debug=settings.environment == "development",
    lifespan=lifespan,
)
logfire.instrument_fastapi(app)

# Add CORS middleware
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins.split(","),
        allow_credentials=settings.cors_credentials,
        allow_methods=settings.cors_methods.split(","),
        allow_headers=settings.cors_headers.split(","),
    )

app.include_router(health_router)
app.include_router(agents_router)
app.include_router(chat_router)


@app.get("/")
async def root() -> RedirectResponse:
    """Redirect root to API docs"""
    return RedirectResponse(url="/docs")
