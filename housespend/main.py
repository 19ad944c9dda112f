"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from housespend.api import analytics, auth, categories, receipts, setup, stock, users
from housespend.config import get_settings
from housespend.services.errors import ServiceError

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    # Schema is managed by Alembic; nothing to set up here
    yield


app = FastAPI(
    title="HouseSpend API",
    description="Household expenses from receipt photos, with a pantry stock ledger",
    version="0.1.0",
    lifespan=lifespan,
)

if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[receipts.WARNINGS_HEADER],
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render service errors as JSON with a machine-readable code."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(auth.router)
app.include_router(setup.router)
app.include_router(users.router)
app.include_router(categories.router)
app.include_router(receipts.router)
app.include_router(stock.router)
app.include_router(analytics.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
