import os
import yaml
from pathlib import Path
from pydantic import AfterValidator, Field
from pydantic_settings import BaseSettings
from typing import Annotated


class Config(BaseSettings):
    host: str = '127.0.0.1'
    port: int = 8000
    debug: bool = False

    organization_url: (
        Annotated[str, AfterValidator(lambda url: url.rstrip('/'))] | None
    ) = None
    project: str | None = None
    token: str | None = None
    api_version: str = '7.1'
    request_timeout: float = 30.0

    pipelines_limit: Annotated[int, Field(ge=0)] = 10
    runs_limit: Annotated[int, Field(ge=0)] = 20


config_home = Path(os.getenv('XDG_CONFIG_HOME') or os.path.expanduser('~/.config'))
config_file = config_home / 'stagehub' / 'config.yml'
if config_file.is_file():
    config_values = yaml.safe_load(config_file.read_text()) or {}
else:
    config_values = {}
config = Config(**config_values, _env_file='.env', _env_prefix='STAGEHUB_')

__all__ = ['Config', 'config']
