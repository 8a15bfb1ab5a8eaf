"""
Rendering a project as YAML or JSON.
"""
import json
from typing import TYPE_CHECKING, Any, Dict

import yaml
from pydantic_core import PydanticSerializationError

from ..errors import SerializationError

if TYPE_CHECKING:
    from ..MODELS.project import Project

RESOURCE_KEYS = ("networks", "volumes", "secrets", "configs")


class _IndentedDumper(yaml.SafeDumper):
    """Indents block sequences under their parent key."""

    def increase_indent(self, flow=False, indentless=False):
        return super().increase_indent(flow, False)


def _dump(model: Any) -> Dict[str, Any]:
    try:
        return model.model_dump(mode="json", by_alias=True)
    except PydanticSerializationError as e:
        raise SerializationError(str(e)) from e


class ProjectSerializer:
    """
    Two views of a project: the structured tree written back as a compose
    file, and a flat map for JSON interchange.
    """
    def __init__(self, project: "Project"):
        self.project = project

    def to_dict(self) -> Dict[str, Any]:
        """
        The structured view. Empty collections are omitted and extensions
        are written inline.
        """
        return _dump(self.project)

    def to_yaml(self, indent: int = 2) -> bytes:
        """
        :param indent: Indentation width.
        :return: UTF-8 encoded YAML.
        """
        return yaml.dump(
            self.to_dict(),
            Dumper=_IndentedDumper,
            indent=indent,
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
        ).encode("utf-8")

    def to_map(self) -> Dict[str, Any]:
        """
        The interchange view: name and services always, the resource
        collections when not empty, and project extensions at top level.

        :raises SerializationError: If an extension uses a reserved key.
        """
        project = self.project
        data: Dict[str, Any] = {
            "name": project.name,
            "services": {name: _dump(service) for name, service in project.services.items()},
        }
        for key in RESOURCE_KEYS:
            resources = getattr(project, key)
            if resources:
                data[key] = {name: _dump(resource) for name, resource in resources.items()}
        for key, value in project.extensions.items():
            if key in data:
                raise SerializationError(f"extension {key} collides with a reserved key")
            data[key] = value
        return data

    def to_json(self) -> bytes:
        """
        :return: UTF-8 encoded JSON with sorted keys.
        """
        try:
            return json.dumps(self.to_map(), sort_keys=True).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(str(e)) from e
