"""Обработка исключений."""

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.logging import get_logger

logger = get_logger(__name__)


class ServiceException(HTTPException):
    """Базовое исключение сервиса."""

    def __init__(
        self, error_code: str, message: str, http_status: int = status.HTTP_400_BAD_REQUEST
    ):
        super().__init__(status_code=http_status, detail={"code": error_code, "message": message})

    @property
    def code(self) -> str:
        return self.detail["code"]

    @property
    def message(self) -> str:
        return self.detail["message"]


class TeamExistsException(ServiceException):
    """Команда уже существует."""

    def __init__(self):
        super().__init__("TEAM_EXISTS", "team_name already exists", status.HTTP_400_BAD_REQUEST)


class NotFoundException(ServiceException):
    """Ресурс не найден."""

    def __init__(self, resource: str = "resource"):
        super().__init__("NOT_FOUND", f"{resource} not found", status.HTTP_404_NOT_FOUND)


class PRExistsException(ServiceException):
    """PR уже существует."""

    def __init__(self):
        super().__init__("PR_EXISTS", "PR id already exists", status.HTTP_409_CONFLICT)


class PRMergedException(ServiceException):
    """PR уже в статусе MERGED."""

    def __init__(self):
        super().__init__("PR_MERGED", "cannot reassign on merged PR", status.HTTP_409_CONFLICT)


class InvalidStatusException(ServiceException):
    """У PR статус, отличный от OPEN и MERGED."""

    def __init__(self, current: str = ""):
        message = "invalid pull request status"
        if current:
            message = f"{message}: {current}"
        super().__init__("INVALID_STATUS", message, status.HTTP_409_CONFLICT)


class NotAssignedException(ServiceException):
    """Ревьювер не назначен на PR."""

    def __init__(self):
        super().__init__(
            "NOT_ASSIGNED", "reviewer is not assigned to this PR", status.HTTP_409_CONFLICT
        )


class NoCandidateException(ServiceException):
    """Нет доступных кандидатов для переназначения."""

    def __init__(self):
        super().__init__(
            "NO_CANDIDATE", "no active replacement candidate in team", status.HTTP_409_CONFLICT
        )


class AlreadyAssignedException(ServiceException):
    """Новый ревьювер уже назначен на PR (гонка при переназначении)."""

    def __init__(self):
        super().__init__(
            "ALREADY_ASSIGNED", "new reviewer already assigned", status.HTTP_409_CONFLICT
        )


class DuplicateUserIDException(ServiceException):
    """В списке участников повторяется user_id."""

    def __init__(self, user_id: str):
        super().__init__(
            "DUPLICATE_USER_ID",
            f"user_id {user_id} is listed more than once",
            status.HTTP_400_BAD_REQUEST,
        )


class UserInAnotherTeamException(ServiceException):
    """Пользователь уже состоит в другой команде."""

    def __init__(self, user_id: str, team_name: str):
        super().__init__(
            "USER_IN_ANOTHER_TEAM",
            f"user {user_id} already belongs to team {team_name}",
            status.HTTP_409_CONFLICT,
        )


class EmptyTeamException(ServiceException):
    """Команда без участников."""

    def __init__(self):
        super().__init__("EMPTY_TEAM", "team must have at least one member", status.HTTP_400_BAD_REQUEST)


async def service_exception_handler(request: Request, exc: ServiceException) -> JSONResponse:
    """Обработчик исключений сервиса."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Обработчик HTTP исключений."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": "HTTP_ERROR", "message": exc.detail}},
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Обработчик ошибок валидации."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Validation error",
                "details": jsonable_errors(exc),
            }
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Обработчик всех прочих ошибок: отдаёт клиенту общий код INTERNAL."""
    logger.error(
        "unhandled_exception",
        method=request.method,
        path=request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": {"code": "INTERNAL", "message": "server error"}},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Ошибки pydantic без несериализуемого поля ctx."""
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]
