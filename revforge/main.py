"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from revforge import __version__
from revforge.api import router as api_router
from revforge.core.config import get_settings
from revforge.core.errors import register_exception_handlers
from revforge.core.logging import configure_logging
from revforge.middleware import register_route_guard, register_security_headers

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)

if settings.JWT_SECRET is None:
    if settings.ALLOW_INSECURE_JWT_SECRET:
        logger.warning(
            "INSECURE MODE: JWT_SECRET is not set; tokens will be signed with the "
            "built-in development secret and reset tokens are echoed in responses."
        )
    else:
        logger.error(
            "JWT_SECRET is not set and ALLOW_INSECURE_JWT_SECRET is false; "
            "token issuance will fail until one of them is configured."
        )

app = FastAPI(
    title="RevenueForge Auth API",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_route_guard(app, settings.API_PREFIX)
register_security_headers(app)
register_exception_handlers(app)

app.include_router(api_router, prefix=settings.API_PREFIX)
