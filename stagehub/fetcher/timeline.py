import logging

from stagehub.client import AzureDevOpsClient
from stagehub.const import (
    BUILD_ID_LOOKUP_TOP,
    FALLBACK_BUILD_WINDOW,
    STAGE_RECORD_TYPE,
    UNKNOWN_STAGE_NAME,
)
from stagehub.exceptions import RemoteAPIError
from stagehub.schemas import Correlation, CorrelationKind, StageRecord
from stagehub.schemas.azure import Timeline, TimelineRecord
from stagehub.status import normalize_stage_result, normalize_stage_state

logger = logging.getLogger(__name__)


def to_stage_record(raw: TimelineRecord) -> StageRecord:
    if raw.id is None or raw.name is None:
        logger.debug(f'Timeline record {raw.id!r} is missing id or name')
    state = normalize_stage_state(raw.state)
    return StageRecord(
        id=raw.id or '',
        name=raw.name or UNKNOWN_STAGE_NAME,
        type=raw.type or '',
        state=state,
        result=normalize_stage_result(state, raw.result),
        start_time=raw.start_time,
        finish_time=raw.finish_time,
        order=raw.order,
        parent_id=raw.parent_id,
        error_count=raw.error_count,
        warning_count=raw.warning_count,
    )


def extract_stages(timeline: Timeline | None) -> list[StageRecord]:
    if timeline is None or not timeline.records:
        return []
    stages = [
        to_stage_record(record)
        for record in timeline.records
        if record.type == STAGE_RECORD_TYPE
    ]
    # list.sort is stable, equal orders keep the order the platform returned
    stages.sort(key=lambda stage: stage.order or 0)
    return stages


class StageCorrelator:
    """
    Finds the build whose timeline holds the stages of a pipeline run.

    The platform has no reliable link between run ids and build ids, so the
    lookup tries, in order:

    1. the run id used directly as a build id;
    2. a build listing filtered to the run id;
    3. an exact id match among the most recent builds of the pipeline;
    4. the most recent build of the pipeline.

    The last step is a guess and is reported as
    ``CorrelationKind.fallback_most_recent``. Its stages may belong to a
    nearby run.
    """

    client: AzureDevOpsClient
    project_id: str
    pipeline_id: int

    def __init__(self, client: AzureDevOpsClient, project_id: str, pipeline_id: int):
        self.client = client
        self.project_id = project_id
        self.pipeline_id = pipeline_id

    async def correlate(self, run_id: int) -> tuple[Correlation, Timeline | None]:
        try:
            timeline = await self.client.get_build_timeline(self.project_id, run_id)
        except RemoteAPIError as e:
            # only a missing build leads to the build search
            if e.status_code != 404:
                raise
            logger.debug(f'Run {run_id} is not usable as a build id: {e}')
        else:
            return self._exact(run_id, run_id), timeline

        correlation = await self.find_build(run_id)
        if correlation.build_id is None:
            return correlation, None
        timeline = await self.client.get_build_timeline(
            self.project_id, correlation.build_id
        )
        return correlation, timeline

    async def find_build(self, run_id: int) -> Correlation:
        try:
            builds = await self.client.list_builds(
                self.project_id, build_ids=[run_id], top=BUILD_ID_LOOKUP_TOP
            )
        except RemoteAPIError as e:
            logger.debug(f'Build lookup by id {run_id} failed: {e}')
        else:
            if any(build.id == run_id for build in builds):
                return self._exact(run_id, run_id)

        try:
            builds = await self.client.list_builds(
                self.project_id,
                definitions=[self.pipeline_id],
                top=FALLBACK_BUILD_WINDOW,
            )
        except RemoteAPIError as e:
            logger.warning(
                f'Could not list builds of pipeline {self.pipeline_id} for run {run_id}: {e}'
            )
            return Correlation(run_id=run_id, kind=CorrelationKind.unresolved)

        builds = builds[:FALLBACK_BUILD_WINDOW]
        for build in builds:
            if build.id == run_id:
                return self._exact(run_id, build.id)
        if builds:
            logger.info(
                f'No build matches run {run_id}, '
                f'using most recent build {builds[0].id} of pipeline {self.pipeline_id}'
            )
            return Correlation(
                run_id=run_id,
                kind=CorrelationKind.fallback_most_recent,
                build_id=builds[0].id,
            )
        return Correlation(run_id=run_id, kind=CorrelationKind.unresolved)

    @staticmethod
    def _exact(run_id: int, build_id: int) -> Correlation:
        return Correlation(run_id=run_id, kind=CorrelationKind.exact, build_id=build_id)
