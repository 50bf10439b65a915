import logging
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from app.access.row_policy import install_row_policy
from app.auth.session import refresh_session
from app.core.cache import close_redis
from app.core.config import settings
from app.core.errors import register_error_handlers
from app.core.http import build_clients
from app.core.inflight import InflightRequests
from app.core.profile_cache import ProfileCache
from app.routers import agent, avatar, health, lookbooks, monitoring, products, threads, wardrobe
from app.routers import auth as auth_router

logger = logging.getLogger("app.requests")


@asynccontextmanager
async def lifespan(app: FastAPI):
    clients = build_clients()
    app.state.http = clients["http"]
    app.state.agent = clients["agent"]
    app.state.profiles = ProfileCache(settings.PROFILE_CACHE_TTL_S)
    app.state.inflight = InflightRequests()
    try:
        yield
    finally:
        app.state.profiles.clear()
        for client in clients.values():
            await client.aclose()
        await close_redis()


install_row_policy()

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
register_error_handlers(app)

prefix = settings.API_PREFIX
app.include_router(health.router, prefix=prefix)
app.include_router(auth_router.router, prefix=prefix)
app.include_router(threads.router, prefix=prefix)
app.include_router(wardrobe.router, prefix=prefix)
app.include_router(lookbooks.router, prefix=prefix)
app.include_router(avatar.router, prefix=prefix)
app.include_router(products.router, prefix=prefix)
app.include_router(monitoring.router, prefix=prefix)
app.include_router(agent.router, prefix=prefix)

app.middleware("http")(refresh_session)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, duration_ms)
    return response


# CORS
origins = settings.cors_origin_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"name": settings.APP_NAME, "env": settings.APP_ENV}
