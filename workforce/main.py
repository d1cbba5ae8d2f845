# workforce/main.py
from __future__ import annotations
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from workforce.api.v1.auth import router as auth_router
from workforce.api.v1.users import router as users_router
from workforce.container import Services, build_postgres_services
from workforce.core.config import Settings, get_settings
from workforce.core.db import create_pool
from workforce.core.errors import AppError, DependencyUnavailable, ErrorCode
from workforce.core.logger import logger
from workforce.core.redis import create_redis
from workforce.schemas.common import Envelope


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Injected services (tests) own their own lifecycle
    if getattr(app.state, "services", None) is not None:
        yield
        return

    settings: Settings = app.state.settings
    redis_client = create_redis(settings)
    pool = create_pool(settings)
    app.state.services = build_postgres_services(settings, redis_client, pool)
    logger.info("Workforce API started")
    try:
        yield
    finally:
        await redis_client.aclose()
        pool.closeall()
        app.state.services = None
        logger.info("Workforce API stopped")


def _error_response(status_code: int, message: str, meta: dict) -> JSONResponse:
    body = Envelope.error(message, meta=meta).model_dump()
    return JSONResponse(status_code=status_code, content=body)


async def app_error_handler(req: Request, exc: AppError) -> JSONResponse:
    return _error_response(exc.status_code, exc.message, exc.to_meta())


async def validation_error_handler(req: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]
    return _error_response(422, "Validation failed", {"code": ErrorCode.VALIDATION_ERROR.value, "errors": errors})


_HTTP_CODES = {
    401: ErrorCode.UNAUTHORIZED,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.BAD_REQUEST,
}


async def http_error_handler(req: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _HTTP_CODES.get(exc.status_code, ErrorCode.BAD_REQUEST if exc.status_code < 500 else ErrorCode.INTERNAL_ERROR)
    return _error_response(exc.status_code, str(exc.detail), {"code": code.value})


async def unhandled_error_handler(req: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", req.method, req.url.path, exc_info=exc)
    return _error_response(500, "Internal error", {"code": ErrorCode.INTERNAL_ERROR.value})


def create_app(services: Optional[Services] = None) -> FastAPI:
    settings = services.settings if services else get_settings()

    app = FastAPI(title="Workforce API", version="1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.services = services

    origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/health")
    async def health(req: Request, full: bool = False):
        """
        Liveness check. With `full=true`, also pings the cache.
        """
        if not full:
            return {"ok": True}
        cache_status = "connected"
        try:
            await req.app.state.services.cache.ping()
        except DependencyUnavailable:
            cache_status = "disconnected"
        return {"ok": cache_status == "connected", "cache": cache_status}

    app.include_router(auth_router)
    app.include_router(users_router)
    return app
