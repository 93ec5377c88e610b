"""Схемы для Pull Request'ов."""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class PullRequestSchema(BaseModel):
    """Схема Pull Request."""

    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: str
    assigned_reviewers: list[str] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")
    merged_at: Optional[datetime] = Field(default=None, serialization_alias="mergedAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class PullRequestShortSchema(BaseModel):
    """Краткая схема Pull Request."""

    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: str

    model_config = ConfigDict(from_attributes=True)


class PullRequestResponse(BaseModel):
    """Ответ с Pull Request."""

    pr: PullRequestSchema


class CreatePRRequest(BaseModel):
    """Запрос на создание PR."""

    pull_request_id: str = Field(min_length=1)
    pull_request_name: str = Field(min_length=1)
    author_id: str = Field(min_length=1)


class MergePRRequest(BaseModel):
    """Запрос на merge PR."""

    pull_request_id: str = Field(min_length=1)


class ReassignRequest(BaseModel):
    """Запрос на переназначение ревьювера."""

    pull_request_id: str = Field(min_length=1)
    old_user_id: str = Field(
        min_length=1, validation_alias=AliasChoices("old_user_id", "old_reviewer_id")
    )


class ReassignResponse(BaseModel):
    """Ответ на переназначение."""

    pr: PullRequestSchema
    replaced_by: str
