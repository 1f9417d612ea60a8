"""
Content business logic: the Subject -> Ability -> Technology hierarchy
(plus Subject -> Project).

Rules enforced here:
- children are only created through their parent ("attach" operations);
- update never creates a row;
- delete removes every descendant first, inside the same transaction;
- list responses use the summary projection, by-id responses the detail one.
"""

from __future__ import annotations

import logging
from typing import Any

from ..core.errors import NotFound, ValidationError
from . import schemas
from .repository import ContentRepository, ContentStore

logger = logging.getLogger(__name__)


def _required_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Field 'name' must not be blank.")
    return cleaned


def _to_technology(row: dict[str, Any]) -> schemas.TechnologyResponse:
    return schemas.TechnologyResponse(
        id=int(row["id"]),
        ability_id=int(row["ability_id"]),
        name=str(row["name"]),
        image=row.get("image"),
    )


def _to_ability(
    row: dict[str, Any],
    technologies: list[dict[str, Any]] | None = None,
) -> schemas.AbilityResponse:
    return schemas.AbilityResponse(
        id=int(row["id"]),
        subject_id=int(row["subject_id"]),
        name=str(row["name"]),
        color=row.get("color"),
        image=row.get("image"),
        technologies=None if technologies is None else [_to_technology(t) for t in technologies],
    )


def _to_project(row: dict[str, Any]) -> schemas.ProjectResponse:
    return schemas.ProjectResponse(
        id=int(row["id"]),
        subject_id=int(row["subject_id"]),
        name=str(row["name"]),
        description=row.get("description"),
        image=row.get("image"),
        link=row.get("link"),
    )


def _to_subject(
    row: dict[str, Any],
    abilities: list[dict[str, Any]] | None = None,
    projects: list[dict[str, Any]] | None = None,
) -> schemas.SubjectResponse:
    return schemas.SubjectResponse(
        id=int(row["id"]),
        name=str(row["name"]),
        icon=row.get("icon"),
        image=row.get("image"),
        abilities=None if abilities is None else [_to_ability(a) for a in abilities],
        projects=None if projects is None else [_to_project(p) for p in projects],
    )


class ResourceService:
    def __init__(self, store: ContentStore) -> None:
        self.store = store

    # Lookups shared by several operations. They raise instead of returning None.

    async def _require_subject(
        self,
        repo: ContentRepository,
        subject_id: int,
        *,
        for_update: bool = False,
    ) -> dict[str, Any]:
        row = await repo.get_subject(subject_id, for_update=for_update)
        if row is None:
            raise NotFound("subject", subject_id)
        return row

    async def _require_ability(
        self,
        repo: ContentRepository,
        ability_id: int,
        *,
        subject_id: int | None = None,
        for_update: bool = False,
    ) -> dict[str, Any]:
        row = await repo.get_ability(ability_id, for_update=for_update)
        if row is None:
            raise NotFound("ability", ability_id)
        # Nested routes must not reach an ability through a foreign subject.
        if subject_id is not None and int(row["subject_id"]) != subject_id:
            raise NotFound("ability", ability_id)
        return row

    async def _require_technology(
        self,
        repo: ContentRepository,
        technology_id: int,
        *,
        for_update: bool = False,
    ) -> dict[str, Any]:
        row = await repo.get_technology(technology_id, for_update=for_update)
        if row is None:
            raise NotFound("technology", technology_id)
        return row

    async def _require_project(
        self,
        repo: ContentRepository,
        project_id: int,
        *,
        for_update: bool = False,
    ) -> dict[str, Any]:
        row = await repo.get_project(project_id, for_update=for_update)
        if row is None:
            raise NotFound("project", project_id)
        return row

    # Deletes lock the parent row before the child row, as delete_subject does.

    async def _lock_ability_for_delete(
        self,
        repo: ContentRepository,
        ability_id: int,
        *,
        subject_id: int | None = None,
    ) -> dict[str, Any]:
        row = await self._require_ability(repo, ability_id, subject_id=subject_id)
        owner_id = int(row["subject_id"])
        if await repo.get_subject(owner_id, for_update=True) is None:
            raise NotFound("ability", ability_id)
        return await self._require_ability(repo, ability_id, subject_id=owner_id, for_update=True)

    async def _lock_technology_for_delete(
        self,
        repo: ContentRepository,
        technology_id: int,
    ) -> dict[str, Any]:
        row = await self._require_technology(repo, technology_id)
        if await repo.get_ability(int(row["ability_id"]), for_update=True) is None:
            raise NotFound("technology", technology_id)
        return await self._require_technology(repo, technology_id, for_update=True)

    async def _lock_project_for_delete(self, repo: ContentRepository, project_id: int) -> dict[str, Any]:
        row = await self._require_project(repo, project_id)
        if await repo.get_subject(int(row["subject_id"]), for_update=True) is None:
            raise NotFound("project", project_id)
        return await self._require_project(repo, project_id, for_update=True)

    async def _delete_ability_tree(self, repo: ContentRepository, ability_id: int) -> int:
        """
        Delete one ability and its technologies. Returns the technology count.
        """
        removed = await repo.delete_technologies_for_ability(ability_id)
        if not await repo.delete_ability(ability_id):
            raise RuntimeError(f"Ability {ability_id} vanished during cascade delete.")
        return removed

    # Subjects

    async def list_subjects(self) -> list[schemas.SubjectResponse]:
        async with self.store.session() as repo:
            rows = await repo.list_subjects()
        return [_to_subject(row) for row in rows]

    async def get_subject(self, subject_id: int) -> schemas.SubjectResponse:
        async with self.store.session() as repo:
            row = await self._require_subject(repo, subject_id)
            abilities = await repo.list_abilities_for_subject(subject_id)
            projects = await repo.list_projects_for_subject(subject_id)
        return _to_subject(row, abilities=abilities, projects=projects)

    async def create_subject(self, data: schemas.SubjectPayload) -> schemas.SubjectResponse:
        async with self.store.session() as repo:
            row = await repo.insert_subject(
                name=_required_name(data.name),
                icon=data.icon,
                image=data.image,
            )
        logger.info("subject_created subject_id=%s", row["id"])
        return _to_subject(row, abilities=[], projects=[])

    async def update_subject(self, subject_id: int, data: schemas.SubjectPayload) -> schemas.SubjectResponse:
        async with self.store.session() as repo:
            await self._require_subject(repo, subject_id, for_update=True)
            row = await repo.update_subject(
                subject_id,
                name=_required_name(data.name),
                icon=data.icon,
                image=data.image,
            )
            if row is None:
                raise NotFound("subject", subject_id)
            abilities = await repo.list_abilities_for_subject(subject_id)
            projects = await repo.list_projects_for_subject(subject_id)
        return _to_subject(row, abilities=abilities, projects=projects)

    async def delete_subject(self, subject_id: int) -> None:
        async with self.store.session() as repo:
            await self._require_subject(repo, subject_id, for_update=True)

            # Lock every ability too, so no technology can be attached mid-cascade.
            abilities = await repo.list_abilities_for_subject(subject_id, for_update=True)
            technology_count = 0
            for ability in abilities:
                technology_count += await self._delete_ability_tree(repo, int(ability["id"]))
            project_count = await repo.delete_projects_for_subject(subject_id)

            if not await repo.delete_subject(subject_id):
                raise RuntimeError(f"Subject {subject_id} vanished during cascade delete.")

        logger.info(
            "subject_deleted subject_id=%s abilities=%s technologies=%s projects=%s",
            subject_id,
            len(abilities),
            technology_count,
            project_count,
        )

    # Abilities

    async def add_ability(self, subject_id: int, data: schemas.AbilityPayload) -> schemas.AbilityResponse:
        async with self.store.session() as repo:
            # Lock the parent so concurrent attaches serialize and none is lost.
            await self._require_subject(repo, subject_id, for_update=True)
            row = await repo.insert_ability(
                subject_id=subject_id,
                name=_required_name(data.name),
                color=data.color,
                image=data.image,
            )
            await repo.touch_subject(subject_id)
        logger.info("ability_added subject_id=%s ability_id=%s", subject_id, row["id"])
        return _to_ability(row, technologies=[])

    async def list_abilities(self, subject_id: int | None = None) -> list[schemas.AbilityResponse]:
        async with self.store.session() as repo:
            if subject_id is None:
                rows = await repo.list_abilities()
            else:
                await self._require_subject(repo, subject_id)
                rows = await repo.list_abilities_for_subject(subject_id)
        return [_to_ability(row) for row in rows]

    async def get_ability(self, ability_id: int, *, subject_id: int | None = None) -> schemas.AbilityResponse:
        async with self.store.session() as repo:
            row = await self._require_ability(repo, ability_id, subject_id=subject_id)
            technologies = await repo.list_technologies_for_ability(ability_id)
        return _to_ability(row, technologies=technologies)

    async def update_ability(
        self,
        ability_id: int,
        data: schemas.AbilityPayload,
        *,
        subject_id: int | None = None,
    ) -> schemas.AbilityResponse:
        async with self.store.session() as repo:
            await self._require_ability(repo, ability_id, subject_id=subject_id, for_update=True)
            row = await repo.update_ability(
                ability_id,
                name=_required_name(data.name),
                color=data.color,
                image=data.image,
            )
            if row is None:
                raise NotFound("ability", ability_id)
            technologies = await repo.list_technologies_for_ability(ability_id)
        return _to_ability(row, technologies=technologies)

    async def delete_ability(self, ability_id: int, *, subject_id: int | None = None) -> None:
        async with self.store.session() as repo:
            row = await self._lock_ability_for_delete(repo, ability_id, subject_id=subject_id)
            owner_id = int(row["subject_id"])
            technology_count = await self._delete_ability_tree(repo, ability_id)
            await repo.touch_subject(owner_id)
        logger.info(
            "ability_deleted subject_id=%s ability_id=%s technologies=%s",
            owner_id,
            ability_id,
            technology_count,
        )

    # Technologies

    async def add_technology(
        self,
        ability_id: int,
        data: schemas.TechnologyPayload,
    ) -> schemas.TechnologyResponse:
        async with self.store.session() as repo:
            await self._require_ability(repo, ability_id, for_update=True)
            row = await repo.insert_technology(
                ability_id=ability_id,
                name=_required_name(data.name),
                image=data.image,
            )
            await repo.touch_ability(ability_id)
        logger.info("technology_added ability_id=%s technology_id=%s", ability_id, row["id"])
        return _to_technology(row)

    async def list_technologies(self, ability_id: int | None = None) -> list[schemas.TechnologyResponse]:
        async with self.store.session() as repo:
            if ability_id is None:
                rows = await repo.list_technologies()
            else:
                await self._require_ability(repo, ability_id)
                rows = await repo.list_technologies_for_ability(ability_id)
        return [_to_technology(row) for row in rows]

    async def get_technology(self, technology_id: int) -> schemas.TechnologyResponse:
        async with self.store.session() as repo:
            row = await self._require_technology(repo, technology_id)
        return _to_technology(row)

    async def update_technology(
        self,
        technology_id: int,
        data: schemas.TechnologyPayload,
    ) -> schemas.TechnologyResponse:
        async with self.store.session() as repo:
            await self._require_technology(repo, technology_id, for_update=True)
            row = await repo.update_technology(
                technology_id,
                name=_required_name(data.name),
                image=data.image,
            )
            if row is None:
                raise NotFound("technology", technology_id)
        return _to_technology(row)

    async def delete_technology(self, technology_id: int) -> None:
        async with self.store.session() as repo:
            row = await self._lock_technology_for_delete(repo, technology_id)
            await repo.delete_technology(technology_id)
            await repo.touch_ability(int(row["ability_id"]))
        logger.info("technology_deleted ability_id=%s technology_id=%s", row["ability_id"], technology_id)

    # Projects

    async def add_project(self, subject_id: int, data: schemas.ProjectPayload) -> schemas.ProjectResponse:
        async with self.store.session() as repo:
            await self._require_subject(repo, subject_id, for_update=True)
            row = await repo.insert_project(
                subject_id=subject_id,
                name=_required_name(data.name),
                description=data.description,
                image=data.image,
                link=data.link,
            )
            await repo.touch_subject(subject_id)
        logger.info("project_added subject_id=%s project_id=%s", subject_id, row["id"])
        return _to_project(row)

    async def list_projects(self, subject_id: int | None = None) -> list[schemas.ProjectResponse]:
        async with self.store.session() as repo:
            if subject_id is None:
                rows = await repo.list_projects()
            else:
                await self._require_subject(repo, subject_id)
                rows = await repo.list_projects_for_subject(subject_id)
        return [_to_project(row) for row in rows]

    async def get_project(self, project_id: int) -> schemas.ProjectResponse:
        async with self.store.session() as repo:
            row = await self._require_project(repo, project_id)
        return _to_project(row)

    async def update_project(self, project_id: int, data: schemas.ProjectPayload) -> schemas.ProjectResponse:
        async with self.store.session() as repo:
            await self._require_project(repo, project_id, for_update=True)
            row = await repo.update_project(
                project_id,
                name=_required_name(data.name),
                description=data.description,
                image=data.image,
                link=data.link,
            )
            if row is None:
                raise NotFound("project", project_id)
        return _to_project(row)

    async def delete_project(self, project_id: int) -> None:
        async with self.store.session() as repo:
            row = await self._lock_project_for_delete(repo, project_id)
            await repo.delete_project(project_id)
            await repo.touch_subject(int(row["subject_id"]))
        logger.info("project_deleted subject_id=%s project_id=%s", row["subject_id"], project_id)
