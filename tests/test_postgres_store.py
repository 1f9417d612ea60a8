# Postgres-backed store. Runs only when TEST_DATABASE_URL points at a scratch database;
# every test truncates the content tables.

import asyncio
import os

import pytest

from portfolio_api.auth.repository import UserRepository
from portfolio_api.content import schemas
from portfolio_api.content.repository import ContentStore
from portfolio_api.content.service import ResourceService
from portfolio_api.core import db
from portfolio_api.core.errors import NotFound

DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "").strip()

pytestmark = pytest.mark.skipif(not DATABASE_URL, reason="TEST_DATABASE_URL is not set")


def run_with_database(fn):
    async def runner():
        database = db.Database(DATABASE_URL, max_size=4)
        await database.init_pool()
        try:
            await database.apply_schema()
            await database.execute(
                "TRUNCATE technologies, abilities, projects, subjects, users RESTART IDENTITY"
            )
            return await fn(ResourceService(ContentStore(database)), database)
        finally:
            await database.close_pool()

    return asyncio.run(runner())


async def count(database, table):
    row = await database.fetch_one(f"SELECT count(*) AS n FROM {table}")
    return int(row["n"])


def test_attach_and_cascade_delete():
    async def scenario(service, database):
        subject = await service.create_subject(schemas.SubjectPayload(name="Programming", icon="code"))
        ability = await service.add_ability(subject.id, schemas.AbilityPayload(name="Backend", color="blue"))
        await service.add_technology(ability.id, schemas.TechnologyPayload(name="Python"))
        await service.add_project(subject.id, schemas.ProjectPayload(name="Portfolio"))

        detail = await service.get_subject(subject.id)
        assert [a.name for a in detail.abilities] == ["Backend"]
        assert [t.name for t in (await service.get_ability(ability.id)).technologies] == ["Python"]

        await service.delete_subject(subject.id)
        for table in ("subjects", "abilities", "technologies", "projects"):
            assert await count(database, table) == 0

    run_with_database(scenario)


def test_missing_parent_leaves_no_rows():
    async def scenario(service, database):
        with pytest.raises(NotFound):
            await service.add_ability(12345, schemas.AbilityPayload(name="Orphan"))
        with pytest.raises(NotFound):
            await service.update_subject(12345, schemas.SubjectPayload(name="Ghost"))
        assert await count(database, "abilities") == 0
        assert await count(database, "subjects") == 0

    run_with_database(scenario)


def test_foreign_keys_refuse_orphaning():
    async def scenario(service, database):
        subject = await service.create_subject(schemas.SubjectPayload(name="Programming"))
        await service.add_ability(subject.id, schemas.AbilityPayload(name="Backend"))
        with pytest.raises(Exception):
            await database.execute("DELETE FROM subjects WHERE id = $1", subject.id)
        assert await count(database, "abilities") == 1

    run_with_database(scenario)


def test_failed_session_rolls_back():
    async def scenario(service, database):
        subject = await service.create_subject(schemas.SubjectPayload(name="Programming"))
        with pytest.raises(RuntimeError):
            async with service.store.session() as repo:
                await repo.insert_ability(subject_id=subject.id, name="Backend", color=None, image=None)
                raise RuntimeError("boom")
        assert await count(database, "abilities") == 0

    run_with_database(scenario)


def test_concurrent_attaches_keep_every_child():
    async def scenario(service, database):
        subject = await service.create_subject(schemas.SubjectPayload(name="Programming"))
        await asyncio.gather(
            *(service.add_ability(subject.id, schemas.AbilityPayload(name=f"Ability {i}")) for i in range(8))
        )
        assert await count(database, "abilities") == 8

    run_with_database(scenario)


def test_user_upsert_and_lookup():
    async def scenario(_, database):
        users = UserRepository(database)
        await users.upsert_user(username="shepard", password_hash="$2b$04$first")
        await users.upsert_user(username=" shepard ", password_hash="$2b$04$second")
        row = await users.get_by_username("shepard")
        assert row["password_hash"] == "$2b$04$second"
        assert await count(database, "users") == 1

    run_with_database(scenario)


# Races between a subject cascade and writes on the same tree. Each side must
# either succeed or see NotFound, and nothing may be left pointing at a deleted parent.

async def orphan_count(database):
    row = await database.fetch_one(
        """
        SELECT
          (SELECT count(*) FROM abilities a WHERE NOT EXISTS (SELECT 1 FROM subjects s WHERE s.id = a.subject_id))
          + (SELECT count(*) FROM projects p WHERE NOT EXISTS (SELECT 1 FROM subjects s WHERE s.id = p.subject_id))
          + (SELECT count(*) FROM technologies t WHERE NOT EXISTS (SELECT 1 FROM abilities a WHERE a.id = t.ability_id))
          AS n
        """
    )
    return int(row["n"])


def assert_success_or_not_found(results):
    for result in results:
        if isinstance(result, BaseException):
            assert isinstance(result, NotFound), repr(result)


async def build_tree(service):
    subject = await service.create_subject(schemas.SubjectPayload(name="Programming"))
    ability = await service.add_ability(subject.id, schemas.AbilityPayload(name="Backend"))
    await service.add_technology(ability.id, schemas.TechnologyPayload(name="Python"))
    return subject, ability


def test_delete_subject_races_add_technology():
    async def scenario(service, database):
        for _ in range(10):
            subject, ability = await build_tree(service)
            results = await asyncio.gather(
                service.add_technology(ability.id, schemas.TechnologyPayload(name="Postgres")),
                service.delete_subject(subject.id),
                return_exceptions=True,
            )
            assert_success_or_not_found(results)
            assert results[1] is None
            assert await orphan_count(database) == 0
        for table in ("subjects", "abilities", "technologies"):
            assert await count(database, table) == 0

    run_with_database(scenario)


def test_delete_subject_races_update_ability():
    async def scenario(service, database):
        for _ in range(10):
            subject, ability = await build_tree(service)
            results = await asyncio.gather(
                service.update_ability(ability.id, schemas.AbilityPayload(name="Backend v2")),
                service.delete_subject(subject.id),
                return_exceptions=True,
            )
            assert_success_or_not_found(results)
            assert results[1] is None
            assert await orphan_count(database) == 0
        assert await count(database, "abilities") == 0

    run_with_database(scenario)


def test_delete_subject_races_update_subject():
    async def scenario(service, database):
        for _ in range(10):
            subject, _ = await build_tree(service)
            results = await asyncio.gather(
                service.update_subject(subject.id, schemas.SubjectPayload(name="Renamed")),
                service.delete_subject(subject.id),
                return_exceptions=True,
            )
            assert_success_or_not_found(results)
            assert results[1] is None
            assert await orphan_count(database) == 0
        assert await count(database, "subjects") == 0

    run_with_database(scenario)


def test_overlapping_deletes_do_not_deadlock():
    async def scenario(service, database):
        for _ in range(10):
            subject, ability = await build_tree(service)
            technology = (await service.list_technologies(ability.id))[0]
            results = await asyncio.gather(
                service.delete_technology(technology.id),
                service.delete_ability(ability.id),
                service.delete_subject(subject.id),
                return_exceptions=True,
            )
            assert_success_or_not_found(results)
            assert await orphan_count(database) == 0
        for table in ("subjects", "abilities", "technologies"):
            assert await count(database, table) == 0

    run_with_database(scenario)
