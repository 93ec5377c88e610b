"""Проверка работоспособности сервиса."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_session

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Ответ проверки работоспособности."""

    status: str
    database: str


@router.get("/health", response_model=HealthResponse)
async def health(session: AsyncSession = Depends(get_session)) -> HealthResponse:
    """Сервис жив и БД отвечает."""
    await session.execute(text("SELECT 1"))
    return HealthResponse(status="ok", database="connected")
