# turns host parameter shapes into Deno Deploy request bodies.

# Hosts deliver repeatable groups ("fixed collections") either as a bare
# list or wrapped under the group name, e.g. {"envVar": [{...}, {...}]}.
# collection() accepts both so callers never branch on it.

from datetime import datetime
from typing import Any, Mapping

from deno_deploy.errors import ValidationError
from deno_deploy.models import format_dt, parse_dt


def collection(value: Any, key: str) -> list[dict[str, Any]]:
    if not value:
        return []
    if isinstance(value, Mapping):
        value = value.get(key) or []
    if isinstance(value, Mapping):
        return [dict(value)]
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"Parameter '{key}' must be a list of entries, got {type(value).__name__}")
    return [dict(entry) for entry in value if isinstance(entry, Mapping)]


def parse_env_vars(env_vars: list[Mapping[str, Any]]) -> dict[str, str]:
    """[{key, value}] → {key: value}; entries without a key are dropped."""
    result: dict[str, str] = {}
    for entry in env_vars:
        key = entry.get("key")
        if key and isinstance(key, str):
            result[key] = str(entry.get("value") or "")
    return result


def parse_assets(assets: list[Mapping[str, Any]]) -> dict[str, dict[str, str]]:
    result: dict[str, dict[str, str]] = {}
    for asset in assets:
        path = asset.get("path")
        if not path:
            raise ValidationError("Every asset needs a path")
        result[path] = {
            "kind": "file",
            "content": asset.get("content") or "",
            "encoding": asset.get("encoding") or "utf-8",
        }
    return result


def parse_database_bindings(bindings: list[Mapping[str, Any]]) -> dict[str, str]:
    """[{name, databaseId}] → {name: databaseId}, skipping half-filled rows."""
    result: dict[str, str] = {}
    for binding in bindings:
        name        = binding.get("name")
        database_id = binding.get("databaseId")
        if name and database_id:
            result[name] = database_id
    return result


def validate_datetime(value: str) -> bool:
    return parse_dt(value) is not None if isinstance(value, str) else False


def format_datetime(value: str | datetime) -> str:
    """Normalise to the API's ISO 8601 form, e.g. 2024-01-01T00:00:00.000Z"""
    if isinstance(value, datetime):
        return format_dt(value)
    parsed = parse_dt(value)
    if parsed is None:
        raise ValidationError(f"Invalid ISO 8601 datetime: {value!r}")
    return format_dt(parsed)
