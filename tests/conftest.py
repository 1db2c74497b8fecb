import re

import httpx
import pytest
import pytest_asyncio

from factories import ORGANIZATION_URL, PROJECT
from stagehub.client import AzureDevOpsClient

API_PREFIX = f'/org/{PROJECT}/_apis/'


class FakeAzure:
    """In-memory stand-in for the Pipelines and Build REST APIs."""

    def __init__(self):
        self.pipelines: list[dict] = []
        self.runs: dict[int, list[dict]] = {}
        # build id -> timeline payload, None means the build has no timeline yet
        self.timelines: dict[int, dict | None] = {}
        # (build id, definition id), most recent first
        self.builds: list[tuple[int, int]] = []
        # builds the id filtered listing does not return
        self.hidden_from_id_lookup: set[int] = set()
        # api paths answering with a server error
        self.failing: set[str] = set()
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix(API_PREFIX)
        if path in self.failing:
            return httpx.Response(500, json={'message': 'boom'})

        if path == 'pipelines':
            return self._list(self.pipelines)
        if m := re.fullmatch(r'pipelines/(\d+)/runs', path):
            return self._list(self.runs.get(int(m[1]), []))
        if m := re.fullmatch(r'build/builds/(\d+)/timeline', path):
            build_id = int(m[1])
            if build_id not in self.timelines:
                return httpx.Response(404, json={'message': 'Build not found'})
            if self.timelines[build_id] is None:
                return httpx.Response(204)
            return httpx.Response(200, json=self.timelines[build_id])
        if path == 'build/builds':
            return self._list(self._filter_builds(request.url.params))
        return httpx.Response(404, json={'message': 'unknown route'})

    def _filter_builds(self, params) -> list[dict]:
        builds = self.builds
        if 'buildIds' in params:
            ids = {int(x) for x in params['buildIds'].split(',')}
            builds = [
                b for b in builds if b[0] in ids and b[0] not in self.hidden_from_id_lookup
            ]
        if 'definitions' in params:
            definitions = {int(x) for x in params['definitions'].split(',')}
            builds = [b for b in builds if b[1] in definitions]
        if '$top' in params:
            builds = builds[: int(params['$top'])]
        return [
            {'id': build_id, 'buildNumber': str(build_id), 'definition': {'id': definition_id}}
            for build_id, definition_id in builds
        ]

    @staticmethod
    def _list(items: list) -> httpx.Response:
        return httpx.Response(200, json={'count': len(items), 'value': items})

    def paths(self) -> list[str]:
        return [r.url.path.removeprefix(API_PREFIX) for r in self.requests]

    @property
    def build_listing_calls(self) -> list[httpx.Request]:
        return [
            r for r in self.requests if r.url.path.removeprefix(API_PREFIX) == 'build/builds'
        ]


@pytest.fixture
def fake() -> FakeAzure:
    return FakeAzure()


@pytest_asyncio.fixture
async def client(fake):
    async with AzureDevOpsClient(
        ORGANIZATION_URL, 'pat', transport=httpx.MockTransport(fake.handler)
    ) as res:
        yield res
