"""Perfin Budgets API: main entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from perfin.config import settings
from perfin.core.database import engine, get_db
from perfin.core.middleware import RequestLoggingMiddleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info("Starting Perfin Budgets API", env=settings.app_env, timezone=settings.timezone)
    yield
    logger.info("Shutting down Perfin Budgets API")
    await engine.dispose()


app = FastAPI(
    title="Perfin Budgets API",
    description="Budget periods, income-based allocation and savings progress",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    redirect_slashes=False,
)

# ── Middleware ─────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


# ── Health Check ──────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check():
    """Liveness probe: always returns healthy if the process is running."""
    return {"status": "healthy", "version": "0.1.0"}


@app.get("/ready", tags=["system"])
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """Readiness probe: checks DB connectivity."""
    checks = {"database": "unknown", "api": "ok"}
    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        logger.warning("readiness check failed", error=str(e))
        checks["database"] = f"error: {e}"
        return {"status": "degraded", "checks": checks}

    return {"status": "ready", "checks": checks}


# ── API Routes ────────────────────────────────────
from perfin.api.v1 import accounts, budgets, categories, income, savings, transactions  # noqa: E402

app.include_router(budgets.router, prefix="/api/v1/budgets", tags=["budgets"])
app.include_router(categories.router, prefix="/api/v1/categories", tags=["categories"])
app.include_router(income.router, prefix="/api/v1/income", tags=["income"])
app.include_router(savings.router, prefix="/api/v1/savings", tags=["savings"])
app.include_router(accounts.router, prefix="/api/v1/accounts", tags=["accounts"])
app.include_router(transactions.router, prefix="/api/v1/transactions", tags=["transactions"])
