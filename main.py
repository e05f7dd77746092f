import time
from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, get_settings
from exceptions import InvoicingError
from routers import invoices_router, payments_router
from services import (
    GatewayService,
    InvoiceRenderer,
    InvoiceService,
    InvoiceStore,
    NotificationService,
    PipelineTracker,
    PriceAuthority,
)
from services.storage_service import PUBLIC_PREFIX
from utils.logger import setup_logging

logger = structlog.get_logger(__name__)


class InvoiceFiles(StaticFiles):
    """Static mount for generated PDFs; the JSON records next to them stay private."""

    async def get_response(self, path: str, scope):
        if not path.endswith(".pdf"):
            raise StarletteHTTPException(status_code=404)
        return await super().get_response(path, scope)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    # Components
    prices = PriceAuthority(settings.price_table)
    store = InvoiceStore(settings.invoice_dir, public_prefix=PUBLIC_PREFIX)
    store.ensure_directory()
    gateway = GatewayService(settings, prices)
    invoices = InvoiceService(settings, store, InvoiceRenderer(settings))
    notifications = NotificationService(settings, prices, gateway, invoices)
    tracker = PipelineTracker()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "application_startup",
            gateway_env=settings.env,
            process_url=settings.process_url,
            invoice_dir=str(store.directory),
        )
        yield
        in_flight = len(tracker)
        left = await tracker.drain(timeout=settings.pipeline_drain_timeout)
        logger.info("application_shutdown", drained=in_flight - left, abandoned=left)

    # App instance
    app = FastAPI(title="PayFast Invoicing", lifespan=lifespan)
    app.state.store = store
    app.state.gateway = gateway
    app.state.invoices = invoices
    app.state.notifications = notifications
    app.state.tracker = tracker

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvoicingError)
    async def invoicing_error_handler(request: Request, exc: InvoicingError):
        return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning("invalid_request", path=request.url.path, errors=len(exc.errors()))
        return JSONResponse(status_code=400, content={"ok": False, "error": "Invalid request"})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        error = exc.detail
        if exc.status_code == 404 and error == "Not Found":
            error = "Route not found"
        return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": error})

    # Access log + 500 fallback
    @app.middleware("http")
    async def access_log_middleware(request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("unhandled_error", method=request.method, path=request.url.path)
            return JSONResponse(status_code=500, content={"ok": False, "error": "Internal error"})
        logger.info(
            "request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response

    @app.get("/health")
    def health():
        return {"ok": True}

    app.include_router(payments_router)
    app.include_router(invoices_router)

    # Mount generated documents after the /invoices utility routes
    app.mount(PUBLIC_PREFIX, InvoiceFiles(directory=str(store.directory)), name="invoices")

    return app


app = create_app()

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run("main:app", host="0.0.0.0", port=settings.port)
