from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, model_validator


class RunState(str, Enum):
    in_progress = 'inProgress'
    completed = 'completed'
    canceling = 'canceling'
    canceled = 'canceled'


class RunResult(str, Enum):
    succeeded = 'succeeded'
    failed = 'failed'
    canceled = 'canceled'
    partially_succeeded = 'partiallySucceeded'
    succeeded_with_issues = 'succeededWithIssues'


class StageState(str, Enum):
    completed = 'completed'
    in_progress = 'inProgress'
    pending = 'pending'


class StageResult(str, Enum):
    succeeded = 'succeeded'
    failed = 'failed'
    canceled = 'canceled'
    skipped = 'skipped'


class CorrelationKind(str, Enum):
    exact = 'exact'
    fallback_most_recent = 'fallbackMostRecent'
    unresolved = 'unresolved'


class PipelineDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    folder: str | None = None
    revision: int | None = None
    url: str | None = None


class PipelineRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    folder: str | None = None
    revision: int | None = None


class StageRecord(BaseModel):
    id: str
    name: str
    type: str
    state: StageState | None = None
    result: StageResult | None = None
    start_time: datetime | None = None
    finish_time: datetime | None = None
    order: int | None = None
    parent_id: str | None = None
    error_count: int | None = None
    warning_count: int | None = None


class Run(BaseModel):
    id: int
    name: str
    state: RunState
    result: RunResult | None = None
    created_date: datetime
    finished_date: datetime | None = None
    url: str
    pipeline: PipelineRef
    stages: list[StageRecord] | None = None
    correlation: CorrelationKind | None = None

    @model_validator(mode='after')
    def check_result_needs_completed(self):
        if self.result is not None and self.state != RunState.completed:
            raise ValueError(f'result {self.result.value} set on a {self.state.value} run')
        return self

    @property
    def failed_stage(self) -> StageRecord | None:
        for stage in self.stages or ():
            if stage.result == StageResult.failed:
                return stage
        return None


class Correlation(BaseModel):
    model_config = ConfigDict(frozen=True)

    run_id: int
    kind: CorrelationKind
    build_id: int | None = None


class Snapshot(BaseModel):
    project_id: str
    pipelines: list[PipelineDefinition]
    runs: dict[int, list[Run]]
