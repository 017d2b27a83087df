import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from servicecrm.adapters.sqlite.schema import ensure_schema
from servicecrm.api.deps import get_settings, policy_from_settings
from servicecrm.api.middleware import AccessGateMiddleware
from servicecrm.app_shell.config import prepare_startup
from servicecrm.domain.errors import ConfigurationError
from servicecrm.domain.policy import AccessPolicy
from servicecrm.rules.loader import load_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules and validate on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        app.state.policy = prepare_startup(rules, settings.data_dir)
        logger.info("Rules loaded from %s", settings.rules_path)
    except ConfigurationError as e:
        logger.critical("Rules load failed: %s", e)
        sys.exit(1)

    ensure_schema(settings.db_path)

    yield
    # Shutdown cleanup if needed


app = FastAPI(
    title="Service CRM API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


def current_policy() -> AccessPolicy:
    policy: AccessPolicy | None = getattr(app.state, "policy", None)
    return policy if policy is not None else policy_from_settings()


# --- Routers ---
from servicecrm.api.routes import (  # noqa: E402
    access,
    auth,
    expenses,
    finances,
    quotations,
)

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(finances.router, prefix="/api/finances", tags=["Finances"])
app.include_router(access.router, prefix="/api", tags=["Access"])
app.include_router(quotations.router, prefix="/api/quotations", tags=["Quotations"])
app.include_router(expenses.router, prefix="/api/expenses", tags=["Expenses"])

app.add_middleware(AccessGateMiddleware, policy_provider=current_policy)

# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
