import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import database
from backend.config import get_settings
from backend.errors import register_exception_handlers
from backend.logging_setup import setup_logging
from backend.middleware import RateLimitMiddleware, SecurityHeadersMiddleware, SlidingWindowLimiter
from backend.routes.auth import router as auth_router
from backend.routes.tasks import router as tasks_router
from backend.routes.users import router as users_router

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(level=settings.log_level, log_dir=settings.log_dir)
    if database.db is not None:
        database.ensure_indexes(database.db)
    else:
        logger.warning("DATABASE_URL is not set; storage-backed routes will fail")
    logger.info("%s started", settings.app_name)
    yield
    database.close()
    logger.info("%s shutting down", settings.app_name)


# App setup
app = FastAPI(title=settings.app_name, version="0.2.0", lifespan=lifespan)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RateLimitMiddleware, prefix="/api/")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.rate_limiter = SlidingWindowLimiter(
    max_requests=settings.rate_limit_max,
    window_seconds=settings.rate_limit_window_seconds,
)

register_exception_handlers(app)

app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
app.include_router(users_router, prefix="/api/users", tags=["Users"])
app.include_router(tasks_router, prefix="/api/tasks", tags=["Tasks"])


@app.get("/api/health")
def health():
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
