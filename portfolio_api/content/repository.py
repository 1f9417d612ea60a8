"""
Content persistence (raw SQL).

`ContentStore.session()` opens one transaction and hands out a
`ContentRepository` bound to that connection, so every statement a service
operation issues commits or rolls back together.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import asyncpg

from ..core import db

SUBJECT_COLUMNS = "id, name, icon, image, created_at, updated_at"
ABILITY_COLUMNS = "id, subject_id, name, color, image, created_at, updated_at"
TECHNOLOGY_COLUMNS = "id, ability_id, name, image, created_at, updated_at"
PROJECT_COLUMNS = "id, subject_id, name, description, image, link, created_at, updated_at"


def _lock_clause(for_update: bool) -> str:
    return "FOR UPDATE" if for_update else ""


class ContentRepository:
    def __init__(self, conn: asyncpg.Connection) -> None:
        self.conn = conn

    async def _fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        return await db.fetch_one(self.conn, sql, *args)

    async def _fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        return await db.fetch_all(self.conn, sql, *args)

    async def _delete(self, sql: str, *args: Any) -> int:
        status = await self.conn.execute(sql, *args)
        return db.affected_rows(status)

    # Subjects

    async def list_subjects(self) -> list[dict[str, Any]]:
        return await self._fetch_all(f"SELECT {SUBJECT_COLUMNS} FROM subjects ORDER BY id")

    async def get_subject(self, subject_id: int, *, for_update: bool = False) -> dict[str, Any] | None:
        return await self._fetch_one(
            f"SELECT {SUBJECT_COLUMNS} FROM subjects WHERE id = $1 {_lock_clause(for_update)}",
            subject_id,
        )

    async def insert_subject(self, *, name: str, icon: str | None, image: str | None) -> dict[str, Any]:
        row = await self._fetch_one(
            f"""
            INSERT INTO subjects (name, icon, image)
            VALUES ($1, $2, $3)
            RETURNING {SUBJECT_COLUMNS}
            """,
            name,
            icon,
            image,
        )
        if row is None:
            raise RuntimeError("Failed to insert subject.")
        return row

    async def update_subject(
        self,
        subject_id: int,
        *,
        name: str,
        icon: str | None,
        image: str | None,
    ) -> dict[str, Any] | None:
        return await self._fetch_one(
            f"""
            UPDATE subjects
            SET name = $2, icon = $3, image = $4, updated_at = now()
            WHERE id = $1
            RETURNING {SUBJECT_COLUMNS}
            """,
            subject_id,
            name,
            icon,
            image,
        )

    async def touch_subject(self, subject_id: int) -> None:
        await self.conn.execute("UPDATE subjects SET updated_at = now() WHERE id = $1", subject_id)

    async def delete_subject(self, subject_id: int) -> bool:
        return await self._delete("DELETE FROM subjects WHERE id = $1", subject_id) > 0

    # Abilities

    async def list_abilities(self) -> list[dict[str, Any]]:
        return await self._fetch_all(f"SELECT {ABILITY_COLUMNS} FROM abilities ORDER BY id")

    async def list_abilities_for_subject(
        self,
        subject_id: int,
        *,
        for_update: bool = False,
    ) -> list[dict[str, Any]]:
        return await self._fetch_all(
            f"SELECT {ABILITY_COLUMNS} FROM abilities WHERE subject_id = $1 "
            f"ORDER BY id {_lock_clause(for_update)}",
            subject_id,
        )

    async def get_ability(self, ability_id: int, *, for_update: bool = False) -> dict[str, Any] | None:
        return await self._fetch_one(
            f"SELECT {ABILITY_COLUMNS} FROM abilities WHERE id = $1 {_lock_clause(for_update)}",
            ability_id,
        )

    async def insert_ability(
        self,
        *,
        subject_id: int,
        name: str,
        color: str | None,
        image: str | None,
    ) -> dict[str, Any]:
        row = await self._fetch_one(
            f"""
            INSERT INTO abilities (subject_id, name, color, image)
            VALUES ($1, $2, $3, $4)
            RETURNING {ABILITY_COLUMNS}
            """,
            subject_id,
            name,
            color,
            image,
        )
        if row is None:
            raise RuntimeError("Failed to insert ability.")
        return row

    async def update_ability(
        self,
        ability_id: int,
        *,
        name: str,
        color: str | None,
        image: str | None,
    ) -> dict[str, Any] | None:
        return await self._fetch_one(
            f"""
            UPDATE abilities
            SET name = $2, color = $3, image = $4, updated_at = now()
            WHERE id = $1
            RETURNING {ABILITY_COLUMNS}
            """,
            ability_id,
            name,
            color,
            image,
        )

    async def touch_ability(self, ability_id: int) -> None:
        await self.conn.execute("UPDATE abilities SET updated_at = now() WHERE id = $1", ability_id)

    async def delete_ability(self, ability_id: int) -> bool:
        return await self._delete("DELETE FROM abilities WHERE id = $1", ability_id) > 0

    # Technologies

    async def list_technologies(self) -> list[dict[str, Any]]:
        return await self._fetch_all(f"SELECT {TECHNOLOGY_COLUMNS} FROM technologies ORDER BY id")

    async def list_technologies_for_ability(self, ability_id: int) -> list[dict[str, Any]]:
        return await self._fetch_all(
            f"SELECT {TECHNOLOGY_COLUMNS} FROM technologies WHERE ability_id = $1 ORDER BY id",
            ability_id,
        )

    async def get_technology(self, technology_id: int, *, for_update: bool = False) -> dict[str, Any] | None:
        return await self._fetch_one(
            f"SELECT {TECHNOLOGY_COLUMNS} FROM technologies WHERE id = $1 {_lock_clause(for_update)}",
            technology_id,
        )

    async def insert_technology(self, *, ability_id: int, name: str, image: str | None) -> dict[str, Any]:
        row = await self._fetch_one(
            f"""
            INSERT INTO technologies (ability_id, name, image)
            VALUES ($1, $2, $3)
            RETURNING {TECHNOLOGY_COLUMNS}
            """,
            ability_id,
            name,
            image,
        )
        if row is None:
            raise RuntimeError("Failed to insert technology.")
        return row

    async def update_technology(
        self,
        technology_id: int,
        *,
        name: str,
        image: str | None,
    ) -> dict[str, Any] | None:
        return await self._fetch_one(
            f"""
            UPDATE technologies
            SET name = $2, image = $3, updated_at = now()
            WHERE id = $1
            RETURNING {TECHNOLOGY_COLUMNS}
            """,
            technology_id,
            name,
            image,
        )

    async def delete_technology(self, technology_id: int) -> bool:
        return await self._delete("DELETE FROM technologies WHERE id = $1", technology_id) > 0

    async def delete_technologies_for_ability(self, ability_id: int) -> int:
        return await self._delete("DELETE FROM technologies WHERE ability_id = $1", ability_id)

    # Projects

    async def list_projects(self) -> list[dict[str, Any]]:
        return await self._fetch_all(f"SELECT {PROJECT_COLUMNS} FROM projects ORDER BY id")

    async def list_projects_for_subject(self, subject_id: int) -> list[dict[str, Any]]:
        return await self._fetch_all(
            f"SELECT {PROJECT_COLUMNS} FROM projects WHERE subject_id = $1 ORDER BY id",
            subject_id,
        )

    async def get_project(self, project_id: int, *, for_update: bool = False) -> dict[str, Any] | None:
        return await self._fetch_one(
            f"SELECT {PROJECT_COLUMNS} FROM projects WHERE id = $1 {_lock_clause(for_update)}",
            project_id,
        )

    async def insert_project(
        self,
        *,
        subject_id: int,
        name: str,
        description: str | None,
        image: str | None,
        link: str | None,
    ) -> dict[str, Any]:
        row = await self._fetch_one(
            f"""
            INSERT INTO projects (subject_id, name, description, image, link)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING {PROJECT_COLUMNS}
            """,
            subject_id,
            name,
            description,
            image,
            link,
        )
        if row is None:
            raise RuntimeError("Failed to insert project.")
        return row

    async def update_project(
        self,
        project_id: int,
        *,
        name: str,
        description: str | None,
        image: str | None,
        link: str | None,
    ) -> dict[str, Any] | None:
        return await self._fetch_one(
            f"""
            UPDATE projects
            SET name = $2, description = $3, image = $4, link = $5, updated_at = now()
            WHERE id = $1
            RETURNING {PROJECT_COLUMNS}
            """,
            project_id,
            name,
            description,
            image,
            link,
        )

    async def delete_project(self, project_id: int) -> bool:
        return await self._delete("DELETE FROM projects WHERE id = $1", project_id) > 0

    async def delete_projects_for_subject(self, subject_id: int) -> int:
        return await self._delete("DELETE FROM projects WHERE subject_id = $1", subject_id)


class ContentStore:
    def __init__(self, database: db.Database) -> None:
        self.database = database

    @asynccontextmanager
    async def session(self) -> AsyncIterator[ContentRepository]:
        async with self.database.transaction() as conn:
            yield ContentRepository(conn)
