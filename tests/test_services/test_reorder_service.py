"""
Unit tests for ReorderService.
"""
import pytest

from taskory.exceptions import TaskNotFoundError
from taskory.services import ReorderService


@pytest.fixture
def service(workspace):
    return ReorderService(workspace["db"])


def test_applies_each_pair(service, workspace, make_task):
    db = workspace["db"]
    tasks = [make_task(workspace["project_id"], f"Task {i}", position=10 + i) for i in range(3)]

    applied = service.reorder([(tasks[2]["id"], 0), (tasks[0]["id"], 1), (tasks[1]["id"], 2)])

    assert applied == [tasks[2]["id"], tasks[0]["id"], tasks[1]["id"]]
    positions = {task_id: db.tasks.get_by_id(task_id)["position"] for task_id in applied}
    assert positions == {tasks[2]["id"]: 0, tasks[0]["id"]: 1, tasks[1]["id"]: 2}


def test_positions_are_stored_as_given(service, workspace, make_task):
    first = make_task(workspace["project_id"], "A")
    second = make_task(workspace["project_id"], "B")

    service.reorder([(first["id"], 3), (second["id"], 3)])

    db = workspace["db"]
    assert db.tasks.get_by_id(first["id"])["position"] == 3
    assert db.tasks.get_by_id(second["id"])["position"] == 3


def test_unknown_task_stops_batch_without_undo(service, workspace, make_task):
    db = workspace["db"]
    first = make_task(workspace["project_id"], "A", position=5)
    last = make_task(workspace["project_id"], "B", position=6)

    with pytest.raises(TaskNotFoundError) as exc_info:
        service.reorder([(first["id"], 0), (999, 1), (last["id"], 2)])

    assert exc_info.value.context["applied"] == [first["id"]]
    assert db.tasks.get_by_id(first["id"])["position"] == 0
    assert db.tasks.get_by_id(last["id"])["position"] == 6


def test_empty_batch(service):
    assert service.reorder([]) == []
