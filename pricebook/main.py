import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from pricebook.config.settings import settings
from pricebook.core.rate_limit import limiter
from pricebook.database.supabase_client import SupabaseClient
from pricebook.modules.auth import routes as auth_routes
from pricebook.modules.permissions import routes as permissions_routes
from pricebook.modules.audit import routes as audit_routes
from pricebook.modules.products import routes as products_routes
from pricebook.modules.price_history import routes as price_history_routes
from pricebook.modules.products.change_feed import ChangeFeed
from pricebook.modules.products.store import catalog_store

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

change_feed = ChangeFeed(catalog_store, schema=settings.realtime_schema)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SlowAPIMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(permissions_routes.router, prefix="/api/v1")
app.include_router(audit_routes.router, prefix="/api/v1")
app.include_router(products_routes.router, prefix="/api/v1")
app.include_router(price_history_routes.router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")

    if not settings.realtime_enabled or not settings.supabase_configured:
        logger.info("Realtime change feed disabled; catalog is invalidated by API writes only")
        return
    try:
        client = await SupabaseClient.get_async_client()
        await change_feed.start(client)
    except Exception as e:
        logger.error(f"Realtime change feed unavailable: {e}")


@app.on_event("shutdown")
async def shutdown_event():
    if change_feed.is_running:
        client = await SupabaseClient.get_async_client()
        await change_feed.stop(client)
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": "Welcome to pricebook-backend", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness check: reports whether Supabase settings and the change feed are in place."""
    return {
        "status": "ready",
        "supabase_configured": settings.supabase_configured,
        "realtime": change_feed.is_running,
    }
