import uuid

from guesspro.errors import InvalidSession, ValidationError
from guesspro.models import DIFFICULTIES

MAX_NAME_LENGTH = 50


def is_uuid(value) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def require_uuid(data: dict, field: str) -> str:
    value = data.get(field)
    if not is_uuid(value):
        raise ValidationError(f'{field} must be a UUID')
    return value


def require_name(data: dict, field: str) -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f'{field} is required')
    value = value.strip()
    if len(value) > MAX_NAME_LENGTH:
        raise ValidationError(f'{field} must be at most {MAX_NAME_LENGTH} characters')
    return value


def require_bool(data: dict, field: str) -> bool:
    value = data.get(field)
    if not isinstance(value, bool):
        raise ValidationError(f'{field} must be a boolean')
    return value


def optional_difficulty(data: dict, field: str = 'difficulty') -> str:
    value = data.get(field)
    if value is None:
        return 'all'
    if value not in DIFFICULTIES:
        raise ValidationError(f"{field} must be one of {', '.join(DIFFICULTIES)}")
    return value


def require_session_id(value) -> str:
    if not value:
        raise InvalidSession('Session ID required')
    if not is_uuid(value):
        raise InvalidSession('Invalid session ID')
    return value
