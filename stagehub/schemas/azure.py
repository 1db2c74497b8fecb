import logging
import re
from datetime import datetime
from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    NonNegativeInt,
    ValidationError,
    ValidationInfo,
    WrapValidator,
    field_validator,
)
from typing import Annotated, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')

_LONG_FRACTION = re.compile(r'(\.\d{6})\d+')


def _trim_fraction(v):
    # the platform sends 7 fractional digits, datetime only holds 6
    if isinstance(v, str):
        return _LONG_FRACTION.sub(r'\1', v, count=1)
    return v


Timestamp = Annotated[datetime, BeforeValidator(_trim_fraction)]
# symbolic tag or legacy numeric code, normalized later
RawStatus = str | int | None


def _none_on_error(v, handler, info: ValidationInfo):
    try:
        return handler(v)
    except ValidationError as e:
        logger.debug(f'Ignoring malformed {info.field_name} {v!r}: {e.errors()[0]["msg"]}')
        return None


# a bad value in one field must not reject the whole record
Lenient = Annotated[T | None, WrapValidator(_none_on_error)]


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Link(_Payload):
    href: str


class Links(_Payload):
    web: Link | None = None

    @property
    def web_href(self) -> str | None:
        return self.web.href if self.web else None


class ValueList(_Payload, Generic[T]):
    count: int | None = None
    value: list[T] = []


class Pipeline(_Payload):
    id: int
    name: str | None = None
    folder: str | None = None
    revision: int | None = None
    links: Links | None = Field(default=None, alias='_links')


class RunPipeline(_Payload):
    id: int | None = None
    name: str | None = None
    folder: str | None = None
    revision: int | None = None


class Run(_Payload):
    id: int
    name: str | None = None
    state: RawStatus = None
    result: RawStatus = None
    created_date: Timestamp | None = Field(default=None, alias='createdDate')
    finished_date: Timestamp | None = Field(default=None, alias='finishedDate')
    links: Links | None = Field(default=None, alias='_links')
    pipeline: RunPipeline | None = None


class TimelineRecord(_Payload):
    id: Lenient[str] = None
    name: Lenient[str] = None
    type: Lenient[str] = None
    state: Lenient[str | int] = None
    result: Lenient[str | int] = None
    start_time: Lenient[Timestamp] = Field(default=None, alias='startTime')
    finish_time: Lenient[Timestamp] = Field(default=None, alias='finishTime')
    order: Lenient[int] = None
    parent_id: Lenient[str] = Field(default=None, alias='parentId')
    error_count: Lenient[NonNegativeInt] = Field(default=None, alias='errorCount')
    warning_count: Lenient[NonNegativeInt] = Field(
        default=None, alias='warningCount'
    )


class Timeline(_Payload):
    id: str | None = None
    change_id: int | None = Field(default=None, alias='changeId')
    records: list[TimelineRecord] | None = None

    @field_validator('records', mode='before')
    @classmethod
    def drop_non_objects(cls, v):
        if not isinstance(v, list):
            return v
        res = [x for x in v if isinstance(x, dict)]
        if len(res) != len(v):
            logger.debug(f'Dropped {len(v) - len(res)} timeline records that are not objects')
        return res


class Build(_Payload):
    id: int
    build_number: str | None = Field(default=None, alias='buildNumber')
    status: RawStatus = None
    result: RawStatus = None
