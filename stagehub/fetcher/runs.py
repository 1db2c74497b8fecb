from datetime import datetime, timezone

from stagehub.client import AzureDevOpsClient
from stagehub.schemas import PipelineRef, Run
from stagehub.schemas import azure
from stagehub.status import normalize_run_result, normalize_run_state


def to_run(raw: azure.Run, pipeline_id: int) -> Run:
    state = normalize_run_state(raw.state)
    pipeline = raw.pipeline or azure.RunPipeline()
    return Run(
        id=raw.id,
        name=raw.name or f'Run {raw.id}',
        state=state,
        result=normalize_run_result(state, raw.result),
        created_date=raw.created_date or datetime.now(timezone.utc),
        finished_date=raw.finished_date,
        url=(raw.links and raw.links.web_href) or '',
        # copied, later changes to the pipeline definition are not reflected
        pipeline=PipelineRef(
            id=pipeline_id,
            name=pipeline.name or '',
            folder=pipeline.folder,
            revision=pipeline.revision,
        ),
    )


async def list_runs(
    client: AzureDevOpsClient, project_id: str, pipeline_id: int, limit: int
) -> list[Run]:
    if limit < 0:
        raise ValueError(f'limit must not be negative, got {limit}')
    # the runs endpoint has no paging, so everything is fetched and truncated
    raw_runs = await client.list_runs(project_id, pipeline_id)
    return [to_run(x, pipeline_id) for x in raw_runs[:limit]]
