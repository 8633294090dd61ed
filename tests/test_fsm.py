import pytest

from qgrid.app.fsm import RunStateMachine, RunState


@pytest.fixture
def fsm():
    return RunStateMachine()


def test_starts_idle(fsm):
    assert fsm.is_idle()
    assert not fsm.is_active()


def test_run_cycle(fsm):
    assert fsm.start()
    assert fsm.is_running()
    assert fsm.pause()
    assert fsm.is_paused()
    assert fsm.is_active()
    assert fsm.resume()
    assert fsm.is_running()
    assert fsm.reset_to_idle()
    assert fsm.is_idle()


def test_single_step_only_from_idle(fsm):
    assert fsm.begin_single_step()
    assert fsm.is_single_step()
    assert not fsm.start()
    assert fsm.reset_to_idle()

    fsm.start()
    assert not fsm.begin_single_step()
    fsm.pause()
    assert not fsm.begin_single_step()


def test_invalid_transitions(fsm):
    assert not fsm.pause()
    assert not fsm.resume()
    assert not fsm.reset_to_idle()
    fsm.start()
    assert not fsm.start()
    assert not fsm.resume()


def test_callbacks(fsm):
    seen = []
    fsm.on_state_enter(RunState.RUNNING, lambda ctx: seen.append(("enter", ctx)))

    fsm.start({"reason": "test"})
    assert not fsm.start({"reason": "again"})

    assert seen == [("enter", {"reason": "test"})]


def test_state_description(fsm):
    assert fsm.get_state_description().startswith("Ready")
    fsm.start()
    assert "Running" in fsm.get_state_description()
