from models import Activity, PetRuntimeState, Position
from pet_entity import ActivityStateMachine


def _machine():
    machine = ActivityStateMachine(PetRuntimeState(position=Position(0, 0)))
    changes = []
    machine.subscribe(lambda prev, cur: changes.append((prev, cur)))
    return machine, changes


def test_starts_idle():
    machine, _ = _machine()
    assert machine.activity is Activity.IDLE


def test_change_notifies_listeners():
    machine, changes = _machine()
    assert machine.apply_normalized(Activity.WRITING, "draft", 0.2) is True
    assert changes == [(Activity.IDLE, Activity.WRITING)]
    assert machine.state.detail == "draft"
    assert machine.state.progress == 0.2


def test_self_transition_updates_metadata_silently():
    machine, changes = _machine()
    machine.apply_normalized(Activity.WRITING, "draft", 0.2)
    assert machine.apply_normalized(Activity.WRITING, "final", 0.9) is False
    assert changes == [(Activity.IDLE, Activity.WRITING)]
    assert machine.state.detail == "final"
    assert machine.state.progress == 0.9


def test_missing_metadata_clears_previous_values():
    machine, _ = _machine()
    machine.apply_normalized(Activity.SYNCING, "repo", 0.5)
    machine.apply_normalized(Activity.SYNCING)
    assert machine.state.detail is None
    assert machine.state.progress is None


def test_any_state_can_follow_any_other():
    machine, changes = _machine()
    order = [Activity.ERROR, Activity.IDLE, Activity.RECEIVING, Activity.REPLYING, Activity.ERROR]
    for activity in order:
        machine.apply_normalized(activity)
    assert [cur for _, cur in changes] == order
