import pytest

from tutorchat.config import Settings
from tutorchat.errors import AlreadyExistsError, InvalidArgumentError, NotFoundError
from tutorchat.repositories import conversation_repository
from tutorchat.utils.concurrency import StaleWriteError


async def _create(repo, student="s1", teacher="t1", course=None):
    return await repo.create(
        student_id=student,
        student_name=f"Student {student}",
        teacher_id=teacher,
        teacher_name=f"Teacher {teacher}",
        course_id=course,
        course_name=f"Course {course}" if course else None,
    )


async def test_create_then_get(repo):
    created = await _create(repo, course="c9")
    assert created["_id"] == "s1-t1"
    assert created["messages"] == []
    assert created["last_message"] is None
    assert created["version"] == 0

    fetched = await repo.get("s1-t1")
    assert fetched["course_name"] == "Course c9"
    assert fetched["student_name"] == "Student s1"
    assert fetched["created_at"] == fetched["updated_at"]


async def test_create_rejects_duplicate_pair(repo):
    await _create(repo)
    with pytest.raises(AlreadyExistsError):
        await _create(repo)


async def test_create_rejects_missing_or_identical_ids(repo):
    with pytest.raises(InvalidArgumentError):
        await _create(repo, student="")
    with pytest.raises(InvalidArgumentError):
        await _create(repo, teacher="")
    with pytest.raises(InvalidArgumentError):
        await _create(repo, student="u1", teacher="u1")


async def test_course_scoping_gives_one_thread_per_course(repo, monkeypatch):
    monkeypatch.setattr(conversation_repository, "get_settings", lambda: Settings(scope_by_course=True))
    first = await _create(repo, course="c9")
    second = await _create(repo, course="c10")
    assert first["_id"] == "s1-t1-c9"
    assert second["_id"] == "s1-t1-c10"
    with pytest.raises(AlreadyExistsError):
        await _create(repo, course="c9")


async def test_get_missing_raises_not_found(repo):
    with pytest.raises(NotFoundError):
        await repo.get("nobody-here")
    assert await repo.find("nobody-here") is None


async def test_delete_is_not_idempotent(repo):
    await _create(repo)
    await repo.delete("s1-t1")
    with pytest.raises(NotFoundError):
        await repo.get("s1-t1")
    with pytest.raises(NotFoundError):
        await repo.delete("s1-t1")


async def test_list_by_participant_covers_both_roles(repo):
    await _create(repo, student="s1", teacher="t1")
    await _create(repo, student="s2", teacher="t1")
    # u9 teaches one course and takes another
    await _create(repo, student="u9", teacher="t1")
    await _create(repo, student="s1", teacher="u9")

    assert {c["_id"] for c in await repo.list_by_participant("t1")} == {"s1-t1", "s2-t1", "t1-u9"}
    assert {c["_id"] for c in await repo.list_by_participant("u9")} == {"t1-u9", "s1-u9"}
    assert await repo.list_by_participant("stranger") == []


async def test_list_by_participant_orders_by_updated_at(repo):
    await _create(repo, student="s1")
    await _create(repo, student="s2")
    await repo.collection.update_one({"_id": "s1-t1"}, {"$set": {"updated_at": "2099-01-01T00:00:00.000+00:00"}})
    listed = await repo.list_by_participant("t1")
    assert [c["_id"] for c in listed] == ["s1-t1", "s2-t1"]


async def test_index_lookups_by_role(repo):
    await _create(repo, student="s1", teacher="t1")
    await _create(repo, student="s1", teacher="t2")
    assert len(await repo.index.by_student("s1")) == 2
    assert len(await repo.index.by_teacher("t2")) == 1
    assert await repo.index.by_teacher("s1") == []


async def test_deleted_conversation_leaves_both_listings(repo):
    await _create(repo)
    await repo.delete("s1-t1")
    assert await repo.list_by_participant("s1") == []
    assert await repo.list_by_participant("t1") == []


async def test_compare_and_set_checks_version(repo):
    await _create(repo)
    await repo.compare_and_set("s1-t1", 0, {"$set": {"course_name": "Renamed"}})
    stored = await repo.get("s1-t1")
    assert stored["version"] == 1
    assert stored["course_name"] == "Renamed"

    with pytest.raises(StaleWriteError):
        await repo.compare_and_set("s1-t1", 0, {"$set": {"course_name": "Lost"}})
    with pytest.raises(StaleWriteError):
        await repo.compare_and_set("gone-id", 0, {"$set": {"course_name": "Lost"}})


async def test_ensure_indexes_keeps_store_usable(repo):
    await repo.ensure_indexes()
    await _create(repo)
    assert [c["_id"] for c in await repo.index.by_teacher("t1")] == ["s1-t1"]
