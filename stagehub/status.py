"""
Normalization of the platform's status vocabularies.

Every field may carry either a symbolic tag (compared case-insensitively) or a
legacy numeric code, and both may show up in the same field. Each mapping is
total: unknown input falls through to an explicit default.
"""

from stagehub.schemas import (
    Run,
    RunResult,
    RunState,
    StageRecord,
    StageResult,
    StageState,
)
from stagehub.schemas.azure import RawStatus

_RUN_STATES: dict[str | int, RunState] = {
    'inprogress': RunState.in_progress,
    1: RunState.in_progress,
    'completed': RunState.completed,
    2: RunState.completed,
    'canceling': RunState.canceling,
    'cancelling': RunState.canceling,
    4: RunState.canceling,
    'canceled': RunState.canceled,
    'cancelled': RunState.canceled,
    8: RunState.canceled,
}

_RUN_RESULTS: dict[str | int, RunResult] = {
    'succeeded': RunResult.succeeded,
    1: RunResult.succeeded,
    'failed': RunResult.failed,
    2: RunResult.failed,
    'canceled': RunResult.canceled,
    'cancelled': RunResult.canceled,
    4: RunResult.canceled,
    'partiallysucceeded': RunResult.partially_succeeded,
    'succeededwithissues': RunResult.succeeded_with_issues,
}

_STAGE_STATES: dict[str | int, StageState] = {
    'pending': StageState.pending,
    0: StageState.pending,
    'inprogress': StageState.in_progress,
    1: StageState.in_progress,
    'completed': StageState.completed,
    2: StageState.completed,
}

_STAGE_RESULTS: dict[str | int, StageResult] = {
    'succeeded': StageResult.succeeded,
    'succeededwithissues': StageResult.succeeded,
    0: StageResult.succeeded,
    'failed': StageResult.failed,
    1: StageResult.failed,
    'canceled': StageResult.canceled,
    'cancelled': StageResult.canceled,
    2: StageResult.canceled,
    'skipped': StageResult.skipped,
    3: StageResult.skipped,
}


def _key(value: RawStatus) -> str | int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    value = value.strip()
    # numeric codes sometimes arrive as strings
    if value.isdigit():
        return int(value)
    return value.lower()


def normalize_run_state(value: RawStatus) -> RunState:
    # unrecognized codes count as completed, the result is normalized separately
    return _RUN_STATES.get(_key(value), RunState.completed)


def normalize_run_result(state: RunState, value: RawStatus) -> RunResult | None:
    if state != RunState.completed:
        return None
    return _RUN_RESULTS.get(_key(value))


def normalize_stage_state(value: RawStatus) -> StageState | None:
    return _STAGE_STATES.get(_key(value))


def normalize_stage_result(
    state: StageState | None, value: RawStatus
) -> StageResult | None:
    if state != StageState.completed:
        return None
    return _STAGE_RESULTS.get(_key(value))


_RUN_STATUS_BY_RESULT = {
    RunResult.succeeded: 'succeeded',
    RunResult.succeeded_with_issues: 'succeeded',
    RunResult.failed: 'failed',
    RunResult.canceled: 'cancelled',
    RunResult.partially_succeeded: 'partial',
}

_STAGE_STATUS_BY_RESULT = {
    StageResult.succeeded: 'succeeded',
    StageResult.failed: 'failed',
    StageResult.canceled: 'cancelled',
    StageResult.skipped: 'skipped',
}


def run_status(run: Run) -> str:
    if run.state == RunState.in_progress:
        return 'in progress'
    if run.state == RunState.completed:
        return _RUN_STATUS_BY_RESULT.get(run.result, 'unknown')
    return 'not started'


def stage_status(stage: StageRecord) -> str:
    if stage.state == StageState.in_progress:
        return 'in progress'
    if stage.state == StageState.completed:
        return _STAGE_STATUS_BY_RESULT.get(stage.result, 'unknown')
    return 'not started'
