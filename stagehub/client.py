import logging
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError
from typing import Iterable, TypeVar

from stagehub.config import config
from stagehub.exceptions import ConfigurationError, RemoteAPIError
from stagehub.schemas import azure

logger = logging.getLogger(__name__)

M = TypeVar('M', bound=BaseModel)


class AzureDevOpsClient:
    """
    Read-only access to the Pipelines and Build REST APIs of one organization.

    One instance wraps one long-lived ``httpx.AsyncClient`` and is meant to be
    shared by every request of a snapshot. Transport, HTTP, authorization and
    payload errors all surface as ``RemoteAPIError``.
    """

    organization_url: str
    api_version: str
    _http: httpx.AsyncClient

    def __init__(
        self,
        organization_url: str | None,
        token: str | None = None,
        *,
        api_version: str = '7.1',
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not organization_url:
            raise ConfigurationError('organization_url must be set')
        self.organization_url = organization_url.rstrip('/')
        self.api_version = api_version
        self._http = httpx.AsyncClient(
            base_url=self.organization_url + '/',
            auth=httpx.BasicAuth('', token) if token else None,
            headers={'Accept': 'application/json'},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> 'AzureDevOpsClient':
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._http.aclose()

    async def _get(self, path: str, params: dict | None = None) -> httpx.Response:
        params = {**(params or {}), 'api-version': self.api_version}
        logger.debug(f'GET {path} {params}')
        try:
            resp = await self._http.get(path, params=params)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RemoteAPIError(
                f'GET {e.request.url} returned {e.response.status_code}',
                status_code=e.response.status_code,
                url=str(e.request.url),
            ) from e
        except httpx.HTTPError as e:
            raise RemoteAPIError(f'GET {path} failed: {e!r}') from e
        # an expired or missing token gets a sign-in page instead of an error code
        if resp.status_code == 203:
            raise RemoteAPIError(
                'Not authorized', status_code=resp.status_code, url=str(resp.url)
            )
        return resp

    @staticmethod
    def _parse(resp: httpx.Response, model: type[M]) -> M:
        try:
            return model.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise RemoteAPIError(
                f'Unexpected payload from {resp.url}: {e}',
                status_code=resp.status_code,
                url=str(resp.url),
            ) from e

    @staticmethod
    def _project_path(project: str) -> str:
        return quote(project, safe='')

    async def list_pipelines(self, project: str) -> list[azure.Pipeline]:
        resp = await self._get(f'{self._project_path(project)}/_apis/pipelines')
        return self._parse(resp, azure.ValueList[azure.Pipeline]).value

    async def list_runs(self, project: str, pipeline_id: int) -> list[azure.Run]:
        resp = await self._get(
            f'{self._project_path(project)}/_apis/pipelines/{pipeline_id}/runs'
        )
        return self._parse(resp, azure.ValueList[azure.Run]).value

    async def get_build_timeline(
        self, project: str, build_id: int
    ) -> azure.Timeline | None:
        resp = await self._get(
            f'{self._project_path(project)}/_apis/build/builds/{build_id}/timeline'
        )
        # queued builds have no timeline yet
        if resp.status_code == 204 or not resp.content.strip():
            return None
        if resp.content.strip() == b'null':
            return None
        return self._parse(resp, azure.Timeline)

    async def list_builds(
        self,
        project: str,
        *,
        build_ids: Iterable[int] | None = None,
        definitions: Iterable[int] | None = None,
        top: int | None = None,
    ) -> list[azure.Build]:
        params = {}
        if build_ids is not None:
            params['buildIds'] = ','.join(map(str, build_ids))
        if definitions is not None:
            params['definitions'] = ','.join(map(str, definitions))
        if top is not None:
            params['$top'] = top
        resp = await self._get(
            f'{self._project_path(project)}/_apis/build/builds', params
        )
        return self._parse(resp, azure.ValueList[azure.Build]).value


def create_client(
    transport: httpx.AsyncBaseTransport | None = None,
) -> AzureDevOpsClient:
    return AzureDevOpsClient(
        config.organization_url,
        config.token,
        api_version=config.api_version,
        timeout=config.request_timeout,
        transport=transport,
    )
