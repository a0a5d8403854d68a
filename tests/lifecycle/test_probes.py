import pytest

from lifecycle.lifecycle_state import LifecycleState
from lifecycle.probes import ProbeResult, run_probe
from models.enums import ProbeKind, ProbeReason


@pytest.fixture
def state():
    return LifecycleState()


def test_not_ready(state):
    assert run_probe(ProbeKind.HEALTH, state) == ProbeResult(ProbeKind.HEALTH, False, ProbeReason.NOT_READY)
    assert run_probe(ProbeKind.READY, state) == ProbeResult(ProbeKind.READY, False, ProbeReason.NOT_READY)
    assert run_probe(ProbeKind.LIVE, state) == ProbeResult(ProbeKind.LIVE, True, ProbeReason.NOT_SHUTTING_DOWN)


@pytest.mark.asyncio
async def test_ready(state):
    await state.set_ready(True)

    assert run_probe(ProbeKind.HEALTH, state).reason is ProbeReason.READY
    assert run_probe(ProbeKind.READY, state).ok
    assert run_probe(ProbeKind.LIVE, state).ok


@pytest.mark.asyncio
async def test_shutting_down_fails_every_probe(state):
    await state.set_ready(True)
    state.mark_shutting_down()

    for kind in ProbeKind:
        result = run_probe(kind, state)
        assert result.ok is False
        assert result.reason is ProbeReason.SHUTTING_DOWN


def test_shutting_down_wins_over_not_ready(state):
    state.mark_shutting_down()

    assert run_probe(ProbeKind.READY, state).reason is ProbeReason.SHUTTING_DOWN


def test_reason_strings():
    assert ProbeReason.READY.value == "SERVER_IS_READY"
    assert ProbeReason.NOT_READY.value == "SERVER_IS_NOT_READY"
    assert ProbeReason.SHUTTING_DOWN.value == "SERVER_IS_SHUTTING_DOWN"
    assert ProbeReason.NOT_SHUTTING_DOWN.value == "SERVER_IS_NOT_SHUTTING_DOWN"
