from __future__ import annotations

import pytest

from deno_deploy.differ import DeploymentDiffer
from deno_deploy.errors import ValidationError
from deno_deploy.models import Deployment, PollState


def _dep(deployment_id: str, status: str, **extra: str) -> Deployment:
    return Deployment.from_api({"id": deployment_id, "status": status, **extra})


def _diff(differ, deployments, state):
    return differ.diff(deployments, state, "org-1", "proj-1")


def test_null_status_is_read_as_empty() -> None:
    assert Deployment.from_api({"id": "A", "status": None}).status == ""


def test_first_poll_only_seeds_state() -> None:
    differ = DeploymentDiffer("deployment.any")

    events, state = _diff(differ, [_dep("A", "pending")], PollState())

    assert events == []
    assert state == PollState(last_deployment_id="A", last_deployment_statuses={"A": "pending"})


def test_lifecycle_across_three_polls() -> None:
    differ = DeploymentDiffer("deployment.any")
    _, state = _diff(differ, [_dep("A", "pending")], PollState())

    events, state = _diff(differ, [_dep("A", "success", updatedAt="2024-01-01T00:05:00.000Z")], state)
    assert [e.to_json() for e in events] == [{
        "event": "deployment.success",
        "previousStatus": "pending",
        "deployment": {"id": "A", "status": "success", "updatedAt": "2024-01-01T00:05:00.000Z"},
        "organizationId": "org-1",
        "projectId": "proj-1",
        "timestamp": "2024-01-01T00:05:00.000Z",
    }]
    assert state.last_deployment_statuses == {"A": "success"}

    # newest first, as the API returns them
    events, state = _diff(
        differ,
        [_dep("B", "pending", createdAt="2024-01-02T00:00:00.000Z"), _dep("A", "success")],
        state,
    )
    assert len(events) == 1
    created = events[0].to_json()
    assert created["event"] == "deployment.created"
    assert created["deployment"]["id"] == "B"
    assert created["timestamp"] == "2024-01-02T00:00:00.000Z"
    assert "previousStatus" not in created
    assert state == PollState(last_deployment_id="B", last_deployment_statuses={"B": "pending", "A": "success"})


def test_created_filter_ignores_status_changes() -> None:
    differ = DeploymentDiffer("deployment.created")
    state = PollState(last_deployment_id="A", last_deployment_statuses={"A": "building"})

    events, _ = _diff(differ, [_dep("B", "pending"), _dep("A", "failed")], state)

    assert [e.event for e in events] == ["deployment.created"]


@pytest.mark.parametrize(
    ("event_filter", "expected"),
    [
        ("deployment.success", ["deployment.success"]),
        ("deployment.failed", ["deployment.failed"]),
        ("deployment.any", ["deployment.cancelled", "deployment.failed", "deployment.success", "deployment.created"]),
    ],
)
def test_status_filters(event_filter, expected) -> None:
    differ = DeploymentDiffer(event_filter)
    state = PollState(
        last_deployment_id="S",
        last_deployment_statuses={"C": "pending", "F": "building", "S": "building"},
    )

    events, _ = _diff(
        differ,
        [_dep("N", "pending"), _dep("S", "success"), _dep("F", "failed"), _dep("C", "cancelled")],
        state,
    )

    assert [e.event for e in events] == expected


def test_events_are_emitted_oldest_first() -> None:
    differ = DeploymentDiffer("deployment.created")
    state = PollState(last_deployment_id="old", last_deployment_statuses={"old": "success"})

    events, _ = _diff(differ, [_dep("third", "pending"), _dep("second", "pending"), _dep("first", "pending")], state)

    assert [e.deployment["id"] for e in events] == ["first", "second", "third"]


def test_unchanged_status_emits_nothing() -> None:
    differ = DeploymentDiffer("deployment.any")
    state = PollState(last_deployment_id="A", last_deployment_statuses={"A": "success"})

    events, new_state = _diff(differ, [_dep("A", "success")], state)

    assert events == []
    assert new_state == state


def test_window_overwrites_and_forgets_dropped_deployments() -> None:
    differ = DeploymentDiffer("deployment.any")
    state = PollState(last_deployment_id="B", last_deployment_statuses={"A": "success", "B": "success"})

    _, new_state = _diff(differ, [_dep("B", "success")], state)

    assert new_state.last_deployment_statuses == {"B": "success"}


def test_empty_fetch_keeps_last_id_and_clears_statuses() -> None:
    differ = DeploymentDiffer("deployment.any")
    state = PollState(last_deployment_id="A", last_deployment_statuses={"A": "success"})

    events, new_state = _diff(differ, [], state)

    assert events == []
    assert new_state == PollState(last_deployment_id="A", last_deployment_statuses={})


def test_missing_timestamps_fall_back_to_now() -> None:
    differ = DeploymentDiffer("deployment.created")
    state = PollState(last_deployment_id="x", last_deployment_statuses={})

    events, _ = _diff(differ, [_dep("A", "pending")], state)

    assert events[0].timestamp.endswith("Z")


def test_unknown_filter_is_rejected() -> None:
    with pytest.raises(ValidationError):
        DeploymentDiffer("deployment.deleted")
