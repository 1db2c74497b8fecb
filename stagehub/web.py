import logging

from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from stagehub.client import create_client
from stagehub.config import config
from stagehub.exceptions import ConfigurationError, RemoteAPIError
from stagehub.fetcher import PipelineService
from stagehub.schemas import Run, Snapshot
from stagehub.status import run_status, stage_status

logger = logging.getLogger(__name__)


def dump_run(run: Run) -> dict:
    data = run.model_dump(mode='json')
    data['status'] = run_status(run)
    for stage_data, stage in zip(data['stages'] or (), run.stages or ()):
        stage_data['status'] = stage_status(stage)
    failed = run.failed_stage
    data['failed_stage'] = failed.name if failed else None
    return data


def dump_snapshot(snapshot: Snapshot) -> dict:
    return {
        'project_id': snapshot.project_id,
        'pipelines': [p.model_dump(mode='json') for p in snapshot.pipelines],
        'runs': {
            str(pipeline_id): [dump_run(run) for run in runs]
            for pipeline_id, runs in snapshot.runs.items()
        },
    }


def get_project(request: Request) -> str:
    project = request.query_params.get('project') or config.project
    if not project:
        raise HTTPException(400, 'project is not set')
    return project


def get_int_param(request: Request, name: str, default: int) -> int:
    value = request.query_params.get(name)
    if value is None:
        return default
    try:
        res = int(value)
    except ValueError:
        raise HTTPException(400, f'{name} must be an integer')
    if res < 0:
        raise HTTPException(400, f'{name} must not be negative')
    return res


async def pipelines(request: Request):
    project = get_project(request)
    async with create_client() as client:
        res = await PipelineService(client).list_pipelines(project)
    return JSONResponse([p.model_dump(mode='json') for p in res])


async def pipeline_runs(request: Request):
    project = get_project(request)
    pipeline_id = request.path_params['pipeline_id']
    limit = get_int_param(request, 'limit', config.runs_limit)
    async with create_client() as client:
        runs = await PipelineService(client).fetch_runs_with_stages(
            project, pipeline_id, limit
        )
    return JSONResponse([dump_run(run) for run in runs])


async def snapshot(request: Request):
    project = get_project(request)
    pipelines_limit = get_int_param(request, 'pipelines', config.pipelines_limit)
    runs_limit = get_int_param(request, 'limit', config.runs_limit)
    async with create_client() as client:
        res = await PipelineService(client).fetch_snapshot(
            project, pipelines_limit, runs_limit
        )
    return JSONResponse(dump_snapshot(res))


async def remote_api_error(request: Request, exc: RemoteAPIError):
    logger.error(f'Remote API error: {exc}')
    return JSONResponse({'detail': str(exc)}, 502)


async def configuration_error(request: Request, exc: ConfigurationError):
    return JSONResponse({'detail': str(exc)}, 500)


app = Starlette(
    debug=config.debug,
    routes=[
        Route('/api/pipelines', pipelines),
        Route('/api/pipelines/{pipeline_id:int}/runs', pipeline_runs),
        Route('/api/snapshot', snapshot),
    ],
    exception_handlers={
        RemoteAPIError: remote_api_error,
        ConfigurationError: configuration_error,
    },
)
