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
Environment mappings where a key can be absent, present without a value, or set.

In a compose file ``environment: [DEBUG]`` declares ``DEBUG`` without giving it
a value: the value is expected to come from somewhere else. That state is
different from ``DEBUG=`` (an empty string) and from not mentioning ``DEBUG``
at all, so the mapping keeps the three apart.
"""
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

# Value stored for a key that is declared without a value.
UNSET = None

LookupFn = Callable[[str], Optional[str]]


class VarState(str, Enum):
    """
    The three states a key can be in.
    """
    ABSENT = "absent"
    UNSET = "unset"
    SET = "set"


class MappingWithEquals(dict):
    """
    Ordered ``KEY -> value`` mapping where ``UNSET`` marks a declared key without value.

    Accepts a dict or a list of ``KEY=VALUE`` / ``KEY`` strings.
    """

    def __init__(self, data: Union[Mapping[str, Any], Iterable[str], None] = None):
        super().__init__()
        if data is None:
            return
        if isinstance(data, Mapping):
            for key, value in data.items():
                self[key] = UNSET if value is None else _scalar_to_str(value)
            return
        for entry in data:
            if "=" in entry:
                key, value = entry.split("=", 1)
                self[key] = value
            else:
                self[entry] = UNSET

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: GetCoreSchemaHandler):
        return core_schema.no_info_before_validator_function(
            cls._coerce,
            core_schema.no_info_after_validator_function(
                cls, handler.generate_schema(Dict[str, Optional[str]])
            ),
        )

    @classmethod
    def _coerce(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return dict(cls(value))
        if isinstance(value, Mapping):
            # Numbers and booleans are written unquoted in YAML.
            return {
                k: (v if v is None else _scalar_to_str(v))
                for k, v in value.items()
            }
        return value

    def state(self, key: str) -> VarState:
        if key not in self:
            return VarState.ABSENT
        if self[key] is UNSET:
            return VarState.UNSET
        return VarState.SET

    def unset(self, key: str) -> "MappingWithEquals":
        """Keep ``key`` but drop its value."""
        self[key] = UNSET
        return self

    def resolve(self, lookup: LookupFn) -> "MappingWithEquals":
        """
        Fill the keys declared without a value from ``lookup``.

        Keys the lookup does not know stay ``UNSET``. Returns a new mapping.

        :param lookup: Returns the value for a name, or None when unknown.
        """
        resolved = MappingWithEquals()
        for key, value in self.items():
            if value is UNSET:
                found = lookup(key)
                resolved[key] = found if found is not None else UNSET
            else:
                resolved[key] = value
        return resolved

    def override_by(self, other: Mapping[str, Optional[str]]) -> "MappingWithEquals":
        """
        Merge ``other`` over this mapping in place. Last writer wins per key.

        An ``UNSET`` value in ``other`` keeps the key but clears its value.
        """
        for key, value in other.items():
            self[key] = value
        return self

    def __repr__(self) -> str:
        return f"MappingWithEquals({dict.__repr__(self)})"


def _scalar_to_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def mapping_lookup(mapping: Mapping[str, Optional[str]]) -> LookupFn:
    """
    Build a lookup function over a plain mapping.

    :param mapping: Variables to look up.
    :return: A function returning the value, or None when missing.
    """
    def lookup(name: str) -> Optional[str]:
        return mapping.get(name)
    return lookup
