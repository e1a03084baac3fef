# api/server.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from loguru import logger
from prometheus_client import make_asgi_app
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.routes.rbac import limiter
from api.routes.rbac import router as rbac_router
from core.acl import ACLLocator
from core.config import Settings
from core.jolokia import JolokiaClient, detect_list_method
from core.rbac import RBACDecorator

# --- Lifespan Manager (Startup/Shutdown) ---


@asynccontextmanager
async def lifespan(app: FastAPI):
    jolokia = None
    app.state.decorator = None
    try:
        settings = Settings.from_env()
    except ValueError as e:
        logger.warning(f"Jolokia not configured, tree endpoints disabled: {e}")
        settings = None

    if settings is not None:
        jolokia = JolokiaClient(
            settings.jolokia_url,
            username=settings.jolokia_username,
            password=settings.jolokia_password,
            timeout=settings.jolokia_timeout,
        )
        status = await detect_list_method(jolokia)
        locator = ACLLocator(jolokia, default=settings.acl_mbean)
        app.state.decorator = RBACDecorator(jolokia, status, locator)
        logger.info(
            f"Connected to Jolokia at {settings.jolokia_url} "
            f"(list method: {status.list_method.value})"
        )

    yield

    # Cleanup
    app.state.decorator = None
    if jolokia is not None:
        await jolokia.aclose()


# --- App Definition ---
app = FastAPI(title="JMX RBAC API", lifespan=lifespan)
app.state.decorator = None

# --- Rate Limiting (SlowAPI) ---

app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request, exc):
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded"},
    )


app.add_middleware(SlowAPIMiddleware)


# Mount Prometheus Metrics Endpoint
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.get("/")
def root():
    return {"message": "jmx-rbac API is running"}


@app.get("/health")
async def health():
    return {"status": "ok"}


app.include_router(rbac_router)
