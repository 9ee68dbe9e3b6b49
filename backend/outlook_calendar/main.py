"""FastAPI application entrypoint.

Responsibilities kept minimal:
  * App initialization and logging setup
  * Router registration (auth, calendar)
  * Cross-cutting concerns: metrics middleware & exception handlers
"""

import logging
import time

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

from .api.auth import router as auth_router, get_auth_service
from .api.calendar import router as calendar_router
from .config import get_settings, load_dotenv_if_requested
from .errors import BaseAppException

load_dotenv_if_requested()
settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Outlook Weekly Calendar API", version="0.1.0")

# --- Metrics setup ---
REQUEST_COUNT = Counter(
    "outlook_calendar_requests_total", "Total HTTP requests", ["method", "path", "status"]
)
REQUEST_LATENCY = Histogram(
    "outlook_calendar_request_latency_seconds", "Latency of HTTP requests", ["method", "path"]
)

# --- CORS (for local frontend dev) ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(calendar_router)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    method = request.method
    started = time.perf_counter()
    response: Response = await call_next(request)
    # Route template (set during routing) rather than the raw path
    route = request.scope.get("route")
    path_label = getattr(route, "path", None) or "unmatched"
    REQUEST_LATENCY.labels(method=method, path=path_label).observe(time.perf_counter() - started)
    REQUEST_COUNT.labels(method=method, path=path_label, status=str(response.status_code)).inc()
    return response


@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.exception_handler(BaseAppException)
async def app_exception_handler(request: Request, exc: BaseAppException):
    if exc.http_status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.code)
    return JSONResponse(status_code=exc.http_status, content=exc.to_body())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "internal error"})


@app.get("/healthz")
def health():
    return {"status": "ok", "oauthStateBackend": get_auth_service().backend_name}


def run() -> None:
    """Serve the app with uvicorn on API_HOST:API_PORT."""
    uvicorn.run("outlook_calendar.main:app", host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
