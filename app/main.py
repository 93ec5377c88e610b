"""Главный модуль FastAPI приложения."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.middleware import RequestLoggingMiddleware
from app.api.v1 import health, pull_requests, stats, teams, users
from app.core.config import settings
from app.core.database import close_db, init_db
from app.core.exceptions import (
    ServiceException,
    http_exception_handler,
    service_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from app.core.logging import setup_logging

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle events."""
    # Startup
    await init_db()
    yield
    # Shutdown
    await close_db()


app = FastAPI(
    title="PR Reviewer Assignment Service",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)

# Регистрируем обработчики исключений
app.add_exception_handler(ServiceException, service_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Регистрируем роутеры
app.include_router(health.router)
app.include_router(teams.router)
app.include_router(users.router)
app.include_router(pull_requests.router)
app.include_router(stats.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.APP_HOST, port=settings.APP_PORT)
