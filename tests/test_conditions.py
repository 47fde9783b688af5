"""Tests for the conditions library."""

from datetime import datetime, timedelta, timezone

import pytest

from work_status.conditions import (
    find_manifest_condition,
    find_status_condition,
    is_status_condition_false,
    is_status_condition_present_and_equal,
    is_status_condition_true,
    remove_status_condition,
    set_manifest_condition,
    set_status_condition,
)
from work_status.manifest import (
    ConditionStatus,
    ManifestCondition,
    ManifestResourceMeta,
    StatusCondition,
)

NOW = datetime(2024, 5, 1, 10, 0, 0, tzinfo=timezone.utc)
BEFORE = NOW - timedelta(seconds=10)
AFTER = NOW + timedelta(seconds=10)


def new_condition(
    name: str,
    status: str,
    reason: str = "my-reason",
    message: str = "my-message",
    last_transition: datetime | None = None,
) -> StatusCondition:
    return StatusCondition(
        type=name,
        status=ConditionStatus(status),
        reason=reason,
        message=message,
        last_transition_time=last_transition,
    )


def new_manifest_condition(
    ordinal: int, resource: str, *conditions: StatusCondition
) -> ManifestCondition:
    return ManifestCondition(
        resource_meta=ManifestResourceMeta(ordinal=ordinal, resource=resource),
        conditions=list(conditions),
    )


def test_add_to_empty() -> None:
    """Test adding a condition to an empty list."""
    conditions: list[StatusCondition] = []
    set_status_condition(conditions, new_condition("test", "True", last_transition=NOW))
    assert conditions == [new_condition("test", "True", last_transition=NOW)]


def test_add_populates_transition_time() -> None:
    """Test a new condition without a transition time gets the current time."""
    start = datetime.now(timezone.utc).replace(microsecond=0)
    conditions: list[StatusCondition] = []
    set_status_condition(conditions, new_condition("test", "True"))
    assert len(conditions) == 1
    assert conditions[0].type == "test"
    assert conditions[0].last_transition_time is not None
    assert conditions[0].last_transition_time >= start


def test_add_non_conflicting() -> None:
    """Test adding a condition of a new type appends and preserves order."""
    conditions = [new_condition("two", "True", last_transition=BEFORE)]
    set_status_condition(conditions, new_condition("one", "True", last_transition=NOW))
    assert conditions == [
        new_condition("two", "True", last_transition=BEFORE),
        new_condition("one", "True", last_transition=NOW),
    ]


def test_change_existing_status() -> None:
    """Test changing the status replaces the reason and advances the time."""
    conditions = [
        new_condition("two", "True", last_transition=BEFORE),
        new_condition("one", "True", last_transition=BEFORE),
    ]
    set_status_condition(
        conditions,
        new_condition("one", "False", "my-different-reason", "my-othermessage"),
    )
    assert conditions[0] == new_condition("two", "True", last_transition=BEFORE)
    changed = conditions[1]
    assert changed.type == "one"
    assert changed.status == ConditionStatus.FALSE
    assert changed.reason == "my-different-reason"
    assert changed.message == "my-othermessage"
    assert changed.last_transition_time is not None
    assert changed.last_transition_time > BEFORE


def test_change_existing_status_with_time() -> None:
    """Test a status change uses the transition time supplied by the caller."""
    conditions = [new_condition("one", "True", last_transition=BEFORE)]
    set_status_condition(
        conditions, new_condition("one", "Unknown", last_transition=AFTER)
    )
    assert conditions == [new_condition("one", "Unknown", last_transition=AFTER)]


@pytest.mark.parametrize(
    ("incoming_time"),
    [None, BEFORE - timedelta(hours=1), AFTER],
    ids=["unset", "earlier", "later"],
)
def test_leave_existing_transition_time(incoming_time: datetime | None) -> None:
    """Test an unchanged status keeps the stored time whatever the input carries."""
    conditions = [
        new_condition("two", "True", last_transition=NOW),
        new_condition("one", "True", last_transition=BEFORE),
    ]
    set_status_condition(
        conditions,
        new_condition("one", "True", "new-reason", "new-message", incoming_time),
    )
    assert conditions == [
        new_condition("two", "True", last_transition=NOW),
        new_condition("one", "True", "new-reason", "new-message", BEFORE),
    ]


def test_set_does_not_retain_input() -> None:
    """Test the list does not share the condition object passed in."""
    incoming = new_condition("one", "True", last_transition=NOW)
    conditions: list[StatusCondition] = []
    set_status_condition(conditions, incoming)
    incoming.reason = "changed-later"
    assert conditions[0].reason == "my-reason"


def test_find_and_remove() -> None:
    """Test looking up and removing conditions by type."""
    conditions = [
        new_condition("one", "True", last_transition=NOW),
        new_condition("two", "False", last_transition=NOW),
    ]
    assert find_status_condition(conditions, "two") == conditions[1]
    assert find_status_condition(conditions, "three") is None

    remove_status_condition(conditions, "three")
    assert len(conditions) == 2

    remove_status_condition(conditions, "one")
    assert conditions == [new_condition("two", "False", last_transition=NOW)]


def test_status_predicates() -> None:
    """Test the status predicates."""
    conditions = [
        new_condition("one", "True", last_transition=NOW),
        new_condition("two", "False", last_transition=NOW),
        new_condition("three", "Unknown", last_transition=NOW),
    ]
    assert is_status_condition_true(conditions, "one")
    assert not is_status_condition_false(conditions, "one")
    assert is_status_condition_false(conditions, "two")
    assert not is_status_condition_true(conditions, "three")
    assert not is_status_condition_false(conditions, "three")
    assert is_status_condition_present_and_equal(
        conditions, "three", ConditionStatus.UNKNOWN
    )
    assert not is_status_condition_true(conditions, "missing")
    assert not is_status_condition_false(conditions, "missing")


@pytest.mark.parametrize(
    ("starting", "new", "expected"),
    [
        (
            [],
            new_manifest_condition(0, "resource1", new_condition("one", "True")),
            [new_manifest_condition(0, "resource1", new_condition("one", "True"))],
        ),
        (
            [new_manifest_condition(0, "resource1", new_condition("one", "True"))],
            new_manifest_condition(1, "resource1", new_condition("one", "True")),
            [
                new_manifest_condition(0, "resource1", new_condition("one", "True")),
                new_manifest_condition(1, "resource1", new_condition("one", "True")),
            ],
        ),
        (
            [
                new_manifest_condition(2, "resource1", new_condition("one", "True")),
                new_manifest_condition(1, "resource1", new_condition("one", "True")),
            ],
            new_manifest_condition(1, "resource2", new_condition("two", "True")),
            [
                new_manifest_condition(2, "resource1", new_condition("one", "True")),
                new_manifest_condition(1, "resource2", new_condition("two", "True")),
            ],
        ),
    ],
    ids=["add-to-empty", "add-new-condition", "update-existing"],
)
def test_set_manifest_condition(
    starting: list[ManifestCondition],
    new: ManifestCondition,
    expected: list[ManifestCondition],
) -> None:
    """Test inserting and replacing manifest conditions."""
    set_manifest_condition(starting, new)
    assert starting == expected


def test_set_manifest_condition_replaces_whole_entry() -> None:
    """Test the inner condition list is replaced rather than merged."""
    manifests = [
        new_manifest_condition(
            0,
            "deployments",
            new_condition("Applied", "True", last_transition=BEFORE),
            new_condition("Available", "True", last_transition=BEFORE),
        )
    ]
    replacement = new_manifest_condition(
        0, "deployments", new_condition("Applied", "False", last_transition=NOW)
    )
    set_manifest_condition(manifests, replacement)
    assert manifests == [replacement]
    assert manifests[0] is not replacement


def test_find_manifest_condition() -> None:
    """Test looking up a manifest condition by ordinal."""
    manifests = [
        new_manifest_condition(2, "resource1"),
        new_manifest_condition(1, "resource2"),
    ]
    assert find_manifest_condition(manifests, 1) == manifests[1]
    assert find_manifest_condition(manifests, 0) is None
