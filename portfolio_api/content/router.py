"""
Content API endpoints: subjects, abilities, technologies, projects.

Reads are public. Every create/update/delete/attach route depends on
`get_current_user`, so it fails with 401 before the service is touched.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request, status

from ..auth import dependencies as auth_dependencies
from . import schemas
from .service import ResourceService

router = APIRouter()

# Ids are Postgres BIGINT; anything outside that range is rejected as a bad request.
MAX_ROW_ID = 2**63 - 1
RowId = Annotated[int, Path(ge=1, le=MAX_ROW_ID)]


def get_resources(request: Request) -> ResourceService:
    return request.app.state.resources


# Subjects


@router.get("/subjects/", response_model=list[schemas.SubjectResponse], tags=["subjects"])
async def list_subjects(
    resources: ResourceService = Depends(get_resources),
) -> list[schemas.SubjectResponse]:
    return await resources.list_subjects()


@router.get("/subjects/{subject_id}", response_model=schemas.SubjectResponse, tags=["subjects"])
async def get_subject(
    subject_id: RowId,
    resources: ResourceService = Depends(get_resources),
) -> schemas.SubjectResponse:
    return await resources.get_subject(subject_id)


@router.post(
    "/subjects/",
    response_model=schemas.SubjectResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["subjects"],
)
async def create_subject(
    payload: schemas.SubjectPayload,
    _: dict = Depends(auth_dependencies.get_current_user),
    resources: ResourceService = Depends(get_resources),
) -> schemas.SubjectResponse:
    return await resources.create_subject(payload)


@router.put("/subjects/{subject_id}", response_model=schemas.SubjectResponse, tags=["subjects"])
async def update_subject(
    subject_id: RowId,
    payload: schemas.SubjectPayload,
    _: dict = Depends(auth_dependencies.get_current_user),
    resources: ResourceService = Depends(get_resources),
) -> schemas.SubjectResponse:
    return await resources.update_subject(subject_id, payload)


@router.delete("/subjects/{subject_id}", response_model=schemas.DeleteResponse, tags=["subjects"])
async def delete_subject(
    subject_id: RowId,
    _: dict = Depends(auth_dependencies.get_current_user),
    resources: ResourceService = Depends(get_resources),
) -> schemas.DeleteResponse:
    await resources.delete_subject(subject_id)
    return schemas.DeleteResponse(id=subject_id)


@router.get(
    "/subjects/{subject_id}/abilities",
    response_model=list[schemas.AbilityResponse],
    tags=["subjects"],
)
async def list_subject_abilities(
    subject_id: RowId,
    resources: ResourceService = Depends(get_resources),
) -> list[schemas.AbilityResponse]:
    return await resources.list_abilities(subject_id)


@router.post(
    "/subjects/{subject_id}/abilities",
    response_model=schemas.AbilityResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["subjects"],
)
async def add_ability(
    subject_id: RowId,
    payload: schemas.AbilityPayload,
    _: dict = Depends(auth_dependencies.get_current_user),
    resources: ResourceService = Depends(get_resources),
) -> schemas.AbilityResponse:
    return await resources.add_ability(subject_id, payload)


@router.get(
    "/subjects/{subject_id}/abilities/{ability_id}",
    response_model=schemas.AbilityResponse,
    tags=["subjects"],
)
async def get_subject_ability(
    subject_id: RowId,
    ability_id: RowId,
    resources: ResourceService = Depends(get_resources),
) -> schemas.AbilityResponse:
    return await resources.get_ability(ability_id, subject_id=subject_id)


@router.put(
    "/subjects/{subject_id}/abilities/{ability_id}",
    response_model=schemas.AbilityResponse,
    tags=["subjects"],
)
async def update_subject_ability(
    subject_id: RowId,
    ability_id: RowId,
    payload: schemas.AbilityPayload,
    _: dict = Depends(auth_dependencies.get_current_user),
    resources: ResourceService = Depends(get_resources),
) -> schemas.AbilityResponse:
    return await resources.update_ability(ability_id, payload, subject_id=subject_id)


@router.delete(
    "/subjects/{subject_id}/abilities/{ability_id}",
    response_model=schemas.DeleteResponse,
    tags=["subjects"],
)
async def delete_subject_ability(
    subject_id: RowId,
    ability_id: RowId,
    _: dict = Depends(auth_dependencies.get_current_user),
    resources: ResourceService = Depends(get_resources),
) -> schemas.DeleteResponse:
    await resources.delete_ability(ability_id, subject_id=subject_id)
    return schemas.DeleteResponse(id=ability_id)


@router.get(
    "/subjects/{subject_id}/projects",
    response_model=list[schemas.ProjectResponse],
    tags=["subjects"],
)
async def list_subject_projects(
    subject_id: RowId,
    resources: ResourceService = Depends(get_resources),
) -> list[schemas.ProjectResponse]:
    return await resources.list_projects(subject_id)


@router.post(
    "/subjects/{subject_id}/projects",
    response_model=schemas.ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["subjects"],
)
async def add_project(
    subject_id: RowId,
    payload: schemas.ProjectPayload,
    _: dict = Depends(auth_dependencies.get_current_user),
    resources: ResourceService = Depends(get_resources),
) -> schemas.ProjectResponse:
    return await resources.add_project(subject_id, payload)


# Abilities


@router.get("/abilities", response_model=list[schemas.AbilityResponse], tags=["abilities"])
async def list_abilities(
    resources: ResourceService = Depends(get_resources),
) -> list[schemas.AbilityResponse]:
    return await resources.list_abilities()


@router.get("/abilities/{ability_id}", response_model=schemas.AbilityResponse, tags=["abilities"])
async def get_ability(
    ability_id: RowId,
    resources: ResourceService = Depends(get_resources),
) -> schemas.AbilityResponse:
    return await resources.get_ability(ability_id)


@router.put("/abilities/{ability_id}", response_model=schemas.AbilityResponse, tags=["abilities"])
async def update_ability(
    ability_id: RowId,
    payload: schemas.AbilityPayload,
    _: dict = Depends(auth_dependencies.get_current_user),
    resources: ResourceService = Depends(get_resources),
) -> schemas.AbilityResponse:
    return await resources.update_ability(ability_id, payload)


@router.delete("/abilities/{ability_id}", response_model=schemas.DeleteResponse, tags=["abilities"])
async def delete_ability(
    ability_id: RowId,
    _: dict = Depends(auth_dependencies.get_current_user),
    resources: ResourceService = Depends(get_resources),
) -> schemas.DeleteResponse:
    await resources.delete_ability(ability_id)
    return schemas.DeleteResponse(id=ability_id)


@router.get(
    "/abilities/{ability_id}/technologies",
    response_model=list[schemas.TechnologyResponse],
    tags=["abilities"],
)
async def list_ability_technologies(
    ability_id: RowId,
    resources: ResourceService = Depends(get_resources),
) -> list[schemas.TechnologyResponse]:
    return await resources.list_technologies(ability_id)


@router.post(
    "/abilities/{ability_id}/technologies",
    response_model=schemas.TechnologyResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["abilities"],
)
async def add_technology(
    ability_id: RowId,
    payload: schemas.TechnologyPayload,
    _: dict = Depends(auth_dependencies.get_current_user),
    resources: ResourceService = Depends(get_resources),
) -> schemas.TechnologyResponse:
    return await resources.add_technology(ability_id, payload)


# Technologies


@router.get("/technologies", response_model=list[schemas.TechnologyResponse], tags=["technologies"])
async def list_technologies(
    resources: ResourceService = Depends(get_resources),
) -> list[schemas.TechnologyResponse]:
    return await resources.list_technologies()


@router.get(
    "/technologies/{technology_id}",
    response_model=schemas.TechnologyResponse,
    tags=["technologies"],
)
async def get_technology(
    technology_id: RowId,
    resources: ResourceService = Depends(get_resources),
) -> schemas.TechnologyResponse:
    return await resources.get_technology(technology_id)


@router.put(
    "/technologies/{technology_id}",
    response_model=schemas.TechnologyResponse,
    tags=["technologies"],
)
async def update_technology(
    technology_id: RowId,
    payload: schemas.TechnologyPayload,
    _: dict = Depends(auth_dependencies.get_current_user),
    resources: ResourceService = Depends(get_resources),
) -> schemas.TechnologyResponse:
    return await resources.update_technology(technology_id, payload)


@router.delete(
    "/technologies/{technology_id}",
    response_model=schemas.DeleteResponse,
    tags=["technologies"],
)
async def delete_technology(
    technology_id: RowId,
    _: dict = Depends(auth_dependencies.get_current_user),
    resources: ResourceService = Depends(get_resources),
) -> schemas.DeleteResponse:
    await resources.delete_technology(technology_id)
    return schemas.DeleteResponse(id=technology_id)


# Projects


@router.get("/projects", response_model=list[schemas.ProjectResponse], tags=["projects"])
async def list_projects(
    resources: ResourceService = Depends(get_resources),
) -> list[schemas.ProjectResponse]:
    return await resources.list_projects()


@router.get("/projects/{project_id}", response_model=schemas.ProjectResponse, tags=["projects"])
async def get_project(
    project_id: RowId,
    resources: ResourceService = Depends(get_resources),
) -> schemas.ProjectResponse:
    return await resources.get_project(project_id)


@router.put("/projects/{project_id}", response_model=schemas.ProjectResponse, tags=["projects"])
async def update_project(
    project_id: RowId,
    payload: schemas.ProjectPayload,
    _: dict = Depends(auth_dependencies.get_current_user),
    resources: ResourceService = Depends(get_resources),
) -> schemas.ProjectResponse:
    return await resources.update_project(project_id, payload)


@router.delete("/projects/{project_id}", response_model=schemas.DeleteResponse, tags=["projects"])
async def delete_project(
    project_id: RowId,
    _: dict = Depends(auth_dependencies.get_current_user),
    resources: ResourceService = Depends(get_resources),
) -> schemas.DeleteResponse:
    await resources.delete_project(project_id)
    return schemas.DeleteResponse(id=project_id)
