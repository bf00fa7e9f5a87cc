"""
Shallow settings merge used by both engines.

Top-level keys in the update replace the current value, nested objects
included, so a partial nested object loses the keys it omits (they fall
back to their defaults). `None` values are ignored.
"""
from __future__ import annotations

from typing import Any, Mapping, TypeVar, Union

from pydantic import BaseModel, ValidationError

from maestro.core.errors import InvalidSettingsError, field_errors

SettingsT = TypeVar("SettingsT", bound=BaseModel)
SettingsChanges = Union[BaseModel, Mapping[str, Any]]


def merge_settings(current: SettingsT, changes: SettingsChanges) -> SettingsT:
    if isinstance(changes, BaseModel):
        changes = changes.model_dump(exclude_unset=True)
    merged = current.model_dump()
    merged.update({k: v for k, v in changes.items() if v is not None})
    try:
        return type(current).model_validate(merged)
    except ValidationError as exc:
        raise InvalidSettingsError(field_errors(exc.errors())) from exc
