# storefront/validations/base.py
import re
from typing import Any, ClassVar, List, NamedTuple, Optional

from pydantic import AnyUrl, BaseModel, ConfigDict, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

SLUG_PATTERN = re.compile(r'^[a-z0-9-]+$')
SLUG_MESSAGE = 'slug may only contain lowercase letters, numbers and hyphens'

UUID_PATTERN = re.compile(
    r'^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$'
)

_url_adapter = TypeAdapter(AnyUrl)


class ParseResult(NamedTuple):
    success: bool
    data: Optional[dict]
    errors: List[dict]


class BaseSchema(BaseModel):
    """Camel-cased on the wire, snake_cased in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Partial (update) schemas only report the fields the caller sent.
    partial: ClassVar[bool] = False

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=self.partial)


def check_slug(value: str) -> str:
    if not SLUG_PATTERN.match(value):
        raise PydanticCustomError('slug_pattern', SLUG_MESSAGE)
    return value


def check_uuid(value: Any, message: str) -> str:
    if not isinstance(value, str) or not UUID_PATTERN.match(value):
        raise PydanticCustomError('uuid', message)
    return value


def check_url(value: str, message: str = 'invalid url') -> str:
    # The original string is kept; AnyUrl would normalise it.
    try:
        _url_adapter.validate_python(value)
    except PydanticValidationError:
        raise PydanticCustomError('url', message)
    return value


def format_errors(exc: PydanticValidationError) -> List[dict]:
    errors = []
    for error in exc.errors():
        path = '.'.join(str(part) for part in error['loc'])
        errors.append({'path': path, 'message': error['msg']})
    return errors


def safe_parse(schema: type, payload: Any) -> ParseResult:
    """Validates ``payload`` against ``schema`` without raising.

    On success ``data`` is the normalized record with every default applied
    (partial schemas return only the fields that were provided). On failure
    ``errors`` lists ``{"path", "message"}`` entries, ``path`` being the
    wire name of the offending field or ``""`` for the record as a whole.
    """
    try:
        instance = schema.model_validate(payload)
    except PydanticValidationError as exc:
        return ParseResult(False, None, format_errors(exc))
    return ParseResult(True, instance.to_record(), [])
