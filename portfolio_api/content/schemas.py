"""
Content API schemas (request/response models).

Request payloads ignore unknown keys, so a client-sent `id` or parent
reference never reaches the store. Response models carry an optional child
collection: `None` in list (summary) responses, a list in detail responses.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class SubjectPayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    icon: str | None = Field(default=None, max_length=200)
    image: str | None = Field(default=None, max_length=500)


class AbilityPayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    color: str | None = Field(default=None, max_length=200)
    image: str | None = Field(default=None, max_length=500)


class TechnologyPayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    image: str | None = Field(default=None, max_length=500)


class ProjectPayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    image: str | None = Field(default=None, max_length=500)
    link: str | None = Field(default=None, max_length=500)


class TechnologyResponse(BaseModel):
    id: int
    ability_id: int
    name: str
    image: str | None = None


class AbilityResponse(BaseModel):
    id: int
    subject_id: int
    name: str
    color: str | None = None
    image: str | None = None
    technologies: list[TechnologyResponse] | None = None


class ProjectResponse(BaseModel):
    id: int
    subject_id: int
    name: str
    description: str | None = None
    image: str | None = None
    link: str | None = None


class SubjectResponse(BaseModel):
    id: int
    name: str
    icon: str | None = None
    image: str | None = None
    abilities: list[AbilityResponse] | None = None
    projects: list[ProjectResponse] | None = None


class DeleteResponse(BaseModel):
    ok: bool = True
    id: int
