import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from stdntlab.config import settings
from stdntlab.database import supabase_client
from stdntlab.modules.auth import routes as auth_routes
from stdntlab.modules.users import routes as users_routes
from stdntlab.modules.groups import routes as groups_routes
from stdntlab.modules.matching import routes as matching_routes
from stdntlab.modules.sessions import routes as sessions_routes
from stdntlab.modules.todos import routes as todos_routes
from stdntlab.modules.materials import routes as materials_routes
from stdntlab.modules.files import routes as files_routes
from stdntlab.modules.quizzes import routes as quizzes_routes
from stdntlab.modules.quizzes.generator import get_quiz_generator

API_PREFIX = "/api/v1"
API_ROUTERS = (
    auth_routes.router,
    users_routes.router,
    groups_routes.router,
    matching_routes.router,
    sessions_routes.router,
    todos_routes.router,
    materials_routes.router,
    files_routes.router,
    quizzes_routes.router,
)

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


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
                    (b"Referrer-Policy", b"strict-origin-when-cross-origin"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for api_router in API_ROUTERS:
    app.include_router(api_router, prefix=API_PREFIX)
# Quiz creation keeps its unversioned path
app.include_router(quizzes_routes.create_router)


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup (%s), %d API routers under %s", settings.environment, len(API_ROUTERS), API_PREFIX)
    if not supabase_client.is_configured():
        logger.warning("SUPABASE_URL / SUPABASE_KEY are not set; every data request will fail")
    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY is not set; quiz generation will fail")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": "Welcome to stdntlab-backend", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe. Supabase is required; quiz generation is reported but optional."""
    checks = {
        "supabase": supabase_client.is_configured(),
        "quiz_generation": get_quiz_generator().is_available,
    }
    if not checks["supabase"]:
        return JSONResponse(status_code=503, content={"status": "not ready", "checks": checks})
    return {"status": "ready", "checks": checks}
