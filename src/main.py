"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
     or:  python -m src.main   (uvloop event loop)
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.pw_account.api.router import router as account_router
from src.pw_admin.api.router import router as admin_router
from src.pw_common.errors import AppError
from src.pw_common.response import error_response
from src.pw_gateway.middleware.request_log import RequestLogMiddleware
from src.pw_market.api.router import router as market_router
from src.wiring import Container, build_container

logger = logging.getLogger(__name__)


def create_app(container: Container | None = None) -> FastAPI:
    """Build the app. A prebuilt container (tests) is used as-is and never stopped."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if container is not None:
            app.state.container = container
            yield
            return
        # Startup: verify DB, start notification worker and scheduler
        built = build_container(settings)
        await built.start()
        app.state.container = built
        try:
            yield
        finally:
            # Shutdown: let an in-flight scheduler tick finish, then dispose
            await built.stop()

    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        lifespan=lifespan,
    )
    if container is not None:
        app.state.container = container

    app.add_middleware(RequestLogMiddleware)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.http_status >= 500:
            logger.error("request failed code=%d kind=%s: %s", exc.code, exc.kind.value, exc.message)
        resp = error_response(exc.code, exc.message, request)
        return JSONResponse(
            status_code=exc.http_status,
            content=resp.model_dump(),
        )

    app.include_router(market_router, prefix="/api/v1")
    app.include_router(account_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": "0.1.0"}

    return app


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = create_app()


def run() -> None:
    uvicorn.run(app, host="0.0.0.0", port=8000, loop="uvloop")


if __name__ == "__main__":
    run()
