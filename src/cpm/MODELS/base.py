# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Base model shared by every compose entity.
"""
from typing import Any, ClassVar, Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer, model_validator

from ..errors import SerializationError

EXTENSION_PREFIX = "x-"


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, (str, list, dict)) and not value)


class ComposeModel(BaseModel):
    """
    Common behaviour of compose entities.

    Keys prefixed with ``x-`` are vendor extensions: they are collected into
    ``extensions`` on validation and written back inline on serialization.
    Keys the model does not know are kept as extra fields so they survive a
    round trip.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    # Fields written even when empty.
    _keep_empty: ClassVar[Tuple[str, ...]] = ()

    extensions: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_extensions(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        found = {k: v for k, v in data.items() if isinstance(k, str) and k.startswith(EXTENSION_PREFIX)}
        if not found:
            return data
        data = {k: v for k, v in data.items() if k not in found}
        extensions = dict(data.get("extensions") or {})
        extensions.update(found)
        data["extensions"] = extensions
        return data

    @field_validator("extensions")
    @classmethod
    def _check_extension_keys(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        for key in value:
            if not key.startswith(EXTENSION_PREFIX):
                raise ValueError(f"extension key {key!r} must start with {EXTENSION_PREFIX!r}")
        return value

    @model_serializer(mode="wrap")
    def _serialize(self, handler) -> Dict[str, Any]:
        data = handler(self)
        extensions = data.pop("extensions", None) or {}
        data = {k: v for k, v in data.items() if k in self._keep_empty or not _is_empty(v)}
        for key, value in extensions.items():
            if key in data:
                raise SerializationError(f"extension {key} collides with a reserved key")
            data[key] = value
        return data
