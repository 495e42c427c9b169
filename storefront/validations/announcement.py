# storefront/validations/announcement.py
import datetime
import re
from typing import ClassVar

from pydantic import Field, field_validator
from pydantic_core import PydanticCustomError

from .base import BaseSchema

# Shape produced by an <input type="datetime-local">
LOCAL_DATETIME_FORMATS = ('%Y-%m-%dT%H:%M', '%Y-%m-%dT%H:%M:%S')
# strptime alone also takes unpadded fields such as 2024-1-5T1:2
LOCAL_DATETIME_PATTERN = re.compile(r'\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2})?')


def parse_local_datetime(value):
    """Returns a naive datetime, or None when ``value`` does not match."""
    if not LOCAL_DATETIME_PATTERN.fullmatch(value):
        return None
    for fmt in LOCAL_DATETIME_FORMATS:
        try:
            return datetime.datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


class AnnouncementSchema(BaseSchema):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1, max_length=5000)
    is_active: bool = True
    start_at: str = ''
    end_at: str = ''

    @field_validator('start_at', 'end_at')
    @classmethod
    def local_datetime(cls, value):
        if value and parse_local_datetime(value) is None:
            raise PydanticCustomError('datetime_format', 'invalid time format')
        return value

    # Runs after start_at, so the error lands on end_at where the form shows it.
    @field_validator('end_at')
    @classmethod
    def end_not_before_start(cls, value, info):
        start = info.data.get('start_at')
        if value and start and parse_local_datetime(value) < parse_local_datetime(start):
            raise PydanticCustomError('time_range', 'end time cannot be earlier than start time')
        return value


class UpdateAnnouncementSchema(AnnouncementSchema):
    partial: ClassVar[bool] = True

    title: str = Field(default=None, min_length=1, max_length=200)
    content: str = Field(default=None, min_length=1, max_length=5000)
    is_active: bool = None
    start_at: str = None
    end_at: str = None
