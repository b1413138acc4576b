from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
import importlib
import logging
import uuid

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
import sentry_sdk
from sentry_sdk.integrations.asgi import SentryAsgiMiddleware
import uvicorn

from app.config import settings
from app.errors import BookingServiceError, NotFoundError, ProviderError, SignatureError, WebhookNotConfigured
from app.logging_setup import setup_logging, TRACE_ID_CTX
from app.services.catalog import build_catalog
from app.services.notification_service import NotificationService
from app.services.payment_gateway import build_gateway, configure_stripe

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    cfg = app.state.settings
    configure_stripe(cfg)
    logger.info("%s running on port %s", cfg.BUSINESS_NAME, cfg.PORT)
    logger.info("Stripe: %s", "configured" if cfg.STRIPE_SECRET_KEY else "NOT CONFIGURED - add STRIPE_SECRET_KEY to .env")
    logger.info(
        "Webhook: %s",
        "configured" if cfg.STRIPE_WEBHOOK_SECRET else "not configured - webhook deliveries will be rejected",
    )
    if cfg.EXPOSE_PROVIDER_ERRORS:
        logger.warning("Payment provider error messages are returned to API callers; set EXPOSE_PROVIDER_ERRORS=false in production")
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# initialize logging and Sentry
setup_logging(settings.LOG_LEVEL)
if settings.SENTRY_DSN:
    sentry_sdk.init(dsn=settings.SENTRY_DSN)
    app.add_middleware(SentryAsgiMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.settings = settings
app.state.catalog = build_catalog(settings.CATALOG_PATH)
app.state.gateway = build_gateway(settings)
app.state.notifications = NotificationService()


@app.middleware("http")
async def add_trace_id(request: Request, call_next):
    trace_id = request.headers.get("x-trace-id") or str(uuid.uuid4())
    TRACE_ID_CTX.set(trace_id)
    response = await call_next(request)
    response.headers["X-Trace-Id"] = trace_id
    return response


@app.exception_handler(BookingServiceError)
async def booking_error_handler(request: Request, exc: BookingServiceError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError):
    message = exc.message if request.app.state.settings.EXPOSE_PROVIDER_ERRORS else "Payment provider error"
    return JSONResponse(status_code=exc.status_code, content={"error": message})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    message = exc.message if request.app.state.settings.EXPOSE_PROVIDER_ERRORS else "Booking not found"
    return JSONResponse(status_code=exc.status_code, content={"error": message})


@app.exception_handler(SignatureError)
async def signature_error_handler(request: Request, exc: SignatureError):
    return PlainTextResponse(f"Webhook Error: {exc.message}", status_code=exc.status_code)


@app.exception_handler(WebhookNotConfigured)
async def webhook_not_configured_handler(request: Request, exc: WebhookNotConfigured):
    return PlainTextResponse(exc.message, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


# Route modules; each decides per endpoint whether it takes parsed JSON or raw bytes
MODULES = [
    "payments",
    "webhooks",
]


for mod in MODULES:
    pkg = importlib.import_module(f"app.modules.{mod}.router")
    app.include_router(pkg.router)


@app.get("/", include_in_schema=False)
async def root():
    return FileResponse(STATIC_DIR / "index.html")


@app.get("/metrics")
async def metrics():
    content = generate_latest()
    return Response(content=content, media_type=CONTENT_TYPE_LATEST)


@app.get("/health")
async def health():
    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return {"status": "ok", "timestamp": timestamp}


@app.get("/ready")
async def ready():
    if not app.state.settings.STRIPE_SECRET_KEY:
        return Response(status_code=503, content="stripe not configured")
    return {"status": "ready"}


# static assets last so API routes take precedence
app.mount("/", StaticFiles(directory=STATIC_DIR), name="static")


def run():
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT)
