"""
Probe predicates consumed by the HTTP layer.

| probe  | passes when                  | fails with                              |
|--------|------------------------------|-----------------------------------------|
| health | not shutting down and ready  | SHUTTING_DOWN, else NOT_READY           |
| live   | not shutting down            | SHUTTING_DOWN                           |
| ready  | not shutting down and ready  | SHUTTING_DOWN, else NOT_READY           |

A failed probe is an expected outcome, so it is logged as a warning only.
"""

from dataclasses import dataclass

from lifecycle.lifecycle_state import LifecycleState
from models.enums import ProbeKind, ProbeReason
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.PROBE)


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a single probe check."""
    kind: ProbeKind
    ok: bool
    reason: ProbeReason


def _serving_check(kind: ProbeKind, state: LifecycleState) -> ProbeResult:
    if state.is_shutting_down():
        return ProbeResult(kind, False, ProbeReason.SHUTTING_DOWN)
    if not state.get_ready():
        return ProbeResult(kind, False, ProbeReason.NOT_READY)
    return ProbeResult(kind, True, ProbeReason.READY)


def check_health(state: LifecycleState) -> ProbeResult:
    return _serving_check(ProbeKind.HEALTH, state)


def check_ready(state: LifecycleState) -> ProbeResult:
    return _serving_check(ProbeKind.READY, state)


def check_live(state: LifecycleState) -> ProbeResult:
    if state.is_shutting_down():
        return ProbeResult(ProbeKind.LIVE, False, ProbeReason.SHUTTING_DOWN)
    return ProbeResult(ProbeKind.LIVE, True, ProbeReason.NOT_SHUTTING_DOWN)


_CHECKS = {
    ProbeKind.HEALTH: check_health,
    ProbeKind.LIVE: check_live,
    ProbeKind.READY: check_ready,
}


def run_probe(kind: ProbeKind, state: LifecycleState) -> ProbeResult:
    """Evaluate a probe and log the outcome."""
    result = _CHECKS[kind](state)
    if result.ok:
        log.debug(f"{kind.value.capitalize()} check passed: {result.reason.value}")
    else:
        log.warn(f"{kind.value.capitalize()} check failed: {result.reason.value}")
    return result
