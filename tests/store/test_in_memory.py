import pytest

from work_status.exceptions import ObjectNotFoundError, VersionConflictError
from work_status.manifest import (
    ConditionStatus,
    ManifestWork,
    ManifestWorkStatus,
    NamedResource,
    StatusCondition,
)
from work_status.store import InMemoryStore, StoreEvent

RESOURCE_ID = NamedResource("ManifestWork", "cluster1", "work1")


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


def applied(status: ConditionStatus = ConditionStatus.TRUE) -> ManifestWorkStatus:
    return ManifestWorkStatus(
        conditions=[StatusCondition(type="Applied", status=status)]
    )


async def test_add_and_get_object(store: InMemoryStore) -> None:
    """Test adding and retrieving an object."""
    work = ManifestWork(name="work1", namespace="cluster1", status=applied())
    stored = await store.add_object(work)
    assert stored.resource_version == "1"
    assert work.resource_version is None

    result = await store.get(RESOURCE_ID)
    assert result == stored

    # Replacing the object advances the version
    stored = await store.add_object(work)
    assert stored.resource_version == "2"


async def test_get_returns_copies(store: InMemoryStore) -> None:
    """Test callers never share state with the store."""
    await store.add_object(ManifestWork(name="work1", namespace="cluster1"))
    result = await store.get(RESOURCE_ID)
    result.status.conditions.append(
        StatusCondition(type="Applied", status=ConditionStatus.TRUE)
    )
    assert (await store.get(RESOURCE_ID)).status == ManifestWorkStatus()


async def test_get_not_found(store: InMemoryStore) -> None:
    """Test fetching an object that does not exist."""
    with pytest.raises(ObjectNotFoundError, match="ManifestWork/cluster1/work1"):
        await store.get(RESOURCE_ID)


async def test_update_status(store: InMemoryStore) -> None:
    """Test a status write with the current version succeeds."""
    await store.add_object(
        ManifestWork(name="work1", namespace="cluster1", spec={"workload": {}})
    )
    work = await store.get(RESOURCE_ID)
    work.status = applied()
    work.spec = {"ignored": True}

    persisted = await store.update_status(work)
    assert persisted.resource_version == "2"
    assert persisted.status == applied()
    # Only the status is written
    assert persisted.spec == {"workload": {}}
    assert await store.get(RESOURCE_ID) == persisted


async def test_update_status_conflict(store: InMemoryStore) -> None:
    """Test a status write with a stale version is rejected."""
    await store.add_object(ManifestWork(name="work1", namespace="cluster1"))
    first = await store.get(RESOURCE_ID)
    second = await store.get(RESOURCE_ID)

    first.status = applied()
    await store.update_status(first)

    second.status = applied(ConditionStatus.FALSE)
    with pytest.raises(VersionConflictError) as exc_info:
        await store.update_status(second)
    assert exc_info.value.expected_version == "1"
    assert exc_info.value.actual_version == "2"
    assert (await store.get(RESOURCE_ID)).status == applied()


async def test_update_status_not_found(store: InMemoryStore) -> None:
    """Test a status write for an object that does not exist."""
    with pytest.raises(ObjectNotFoundError):
        await store.update_status(
            ManifestWork(name="work1", namespace="cluster1", resource_version="1")
        )


async def test_list_objects(store: InMemoryStore) -> None:
    """Test listing objects."""
    await store.add_object(ManifestWork(name="work1", namespace="cluster1"))
    await store.add_object(ManifestWork(name="work2", namespace="cluster1"))
    await store.add_object(ManifestWork(name="work1", namespace="cluster2"))
    assert sorted(w.name for w in store.list_objects()) == ["work1", "work1", "work2"]
    assert sorted(w.name for w in store.list_objects("cluster1")) == [
        "work1",
        "work2",
    ]
    assert store.list_objects("cluster3") == []


async def test_listeners(store: InMemoryStore) -> None:
    """Test listeners are notified of object and status changes."""
    added = []
    updated = []

    def on_added(resource_id: NamedResource, work: ManifestWork) -> None:
        added.append((resource_id, work.resource_version))

    def on_updated(resource_id: NamedResource, status: ManifestWorkStatus) -> None:
        updated.append((resource_id, status))

    store.add_listener(StoreEvent.OBJECT_ADDED, on_added)
    remove = store.add_listener(StoreEvent.STATUS_UPDATED, on_updated)

    await store.add_object(ManifestWork(name="work1", namespace="cluster1"))
    assert added == [(RESOURCE_ID, "1")]

    work = await store.get(RESOURCE_ID)
    work.status = applied()
    work = await store.update_status(work)
    assert updated == [(RESOURCE_ID, applied())]

    remove()
    work.status = applied(ConditionStatus.FALSE)
    await store.update_status(work)
    assert len(updated) == 1


async def test_listener_flush(store: InMemoryStore) -> None:
    """Test flushing existing objects to a new listener."""
    await store.add_object(
        ManifestWork(name="work1", namespace="cluster1", status=applied())
    )
    statuses = []
    store.add_listener(
        StoreEvent.STATUS_UPDATED,
        lambda resource_id, status: statuses.append((resource_id, status)),
        flush=True,
    )
    assert statuses == [(RESOURCE_ID, applied())]


async def test_listener_failure_is_contained(store: InMemoryStore) -> None:
    """Test a failing listener does not fail the write."""

    def broken(resource_id: NamedResource, work: ManifestWork) -> None:
        raise ValueError("boom")

    store.add_listener(StoreEvent.OBJECT_ADDED, broken)
    stored = await store.add_object(ManifestWork(name="work1", namespace="cluster1"))
    assert stored.resource_version == "1"
