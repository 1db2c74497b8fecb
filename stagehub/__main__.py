import sys

import asyncio
import json
import uvicorn

from stagehub.client import create_client
from stagehub.config import config
from stagehub.exceptions import ConfigurationError
from stagehub.fetcher import PipelineService
from stagehub.web import app, dump_snapshot


async def print_snapshot():
    if not config.project:
        raise ConfigurationError('project must be set')
    async with create_client() as client:
        res = await PipelineService(client).fetch_snapshot(config.project)
    print(json.dumps(dump_snapshot(res), indent=2))


USAGE = 'usage: python -m stagehub snapshot|server'

if len(sys.argv) == 1:
    raise ValueError(USAGE)
if sys.argv[1] == 'snapshot':
    asyncio.run(print_snapshot())
elif sys.argv[1] == 'server':
    uvicorn.run(app, host=config.host, port=config.port)
else:
    raise ValueError(USAGE)
