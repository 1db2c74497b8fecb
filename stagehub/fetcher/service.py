import asyncio
import logging

from stagehub.client import AzureDevOpsClient
from stagehub.config import config
from stagehub.exceptions import StagehubError
from stagehub.fetcher.catalog import list_pipelines
from stagehub.fetcher.runs import list_runs
from stagehub.fetcher.timeline import StageCorrelator, extract_stages
from stagehub.schemas import CorrelationKind, PipelineDefinition, Run, Snapshot

logger = logging.getLogger(__name__)


class PipelineService:
    """
    Point-in-time view of the pipelines of a project with their recent runs
    and stages.

    Both fan-out layers (pipelines, then runs of one pipeline) start every
    child at once and wait for all of them. A child that fails is logged and
    replaced with an empty result, its siblings are never cancelled. Only a
    failure to list the pipeline catalog itself reaches the caller.
    """

    client: AzureDevOpsClient

    def __init__(self, client: AzureDevOpsClient):
        self.client = client

    async def list_pipelines(self, project_id: str) -> list[PipelineDefinition]:
        return await list_pipelines(self.client, project_id)

    async def list_runs(
        self, project_id: str, pipeline_id: int, limit: int
    ) -> list[Run]:
        return await list_runs(self.client, project_id, pipeline_id, limit)

    async def attach_stages(self, project_id: str, pipeline_id: int, run: Run) -> Run:
        correlator = StageCorrelator(self.client, project_id, pipeline_id)
        try:
            correlation, timeline = await correlator.correlate(run.id)
            stages = extract_stages(timeline)
        except StagehubError as e:
            logger.warning(f'Could not fetch stages for run {run.id}: {e}')
            return run.model_copy(update={'stages': []})
        if correlation.kind == CorrelationKind.unresolved:
            logger.info(f'Run {run.id} of pipeline {pipeline_id} has no correlated build')
        return run.model_copy(
            update={'stages': stages, 'correlation': correlation.kind}
        )

    async def fetch_runs_with_stages(
        self, project_id: str, pipeline_id: int, limit: int
    ) -> list[Run]:
        runs = await self.list_runs(project_id, pipeline_id, limit)
        return list(
            await asyncio.gather(
                *(self.attach_stages(project_id, pipeline_id, run) for run in runs)
            )
        )

    async def _load_pipeline(
        self, project_id: str, pipeline_id: int, limit: int
    ) -> list[Run]:
        try:
            return await self.fetch_runs_with_stages(project_id, pipeline_id, limit)
        except StagehubError as e:
            logger.error(f'Error loading runs for pipeline {pipeline_id}: {e}')
            return []

    async def fetch_snapshot(
        self,
        project_id: str,
        pipelines_limit: int | None = None,
        runs_limit: int | None = None,
    ) -> Snapshot:
        if pipelines_limit is None:
            pipelines_limit = config.pipelines_limit
        if runs_limit is None:
            runs_limit = config.runs_limit
        if pipelines_limit < 0 or runs_limit < 0:
            raise ValueError('limits must not be negative')

        pipelines = await self.list_pipelines(project_id)
        to_load = pipelines[:pipelines_limit]
        results = await asyncio.gather(
            *(self._load_pipeline(project_id, p.id, runs_limit) for p in to_load)
        )
        return Snapshot(
            project_id=project_id,
            pipelines=pipelines,
            runs={p.id: runs for p, runs in zip(to_load, results)},
        )
