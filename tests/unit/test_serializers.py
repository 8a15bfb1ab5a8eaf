"""
Unit tests for rendering projects as YAML and JSON.
"""
import json

import pytest
import yaml
from pydantic import ValidationError

from cpm.MODELS.project import Project
from cpm.errors import SerializationError


def make_project():
    return Project.model_validate({
        "name": "shop",
        "working_dir": "/srv/shop",
        "environment": {"SECRET": "do-not-write"},
        "x-common": {"restart": "always"},
        "services": {
            "web": {
                "image": "nginx",
                "depends_on": {"api": {"condition": "service_healthy"}},
                "environment": ["DEBUG", "PORT=80"],
                "networks": ["front"],
                "x-team": "frontend",
                "stop_signal": "SIGTERM",
            },
            "api": {"image": "api", "networks": ["front"]},
        },
        "networks": {"front": None},
    })


class TestStructuredView:
    """Tests for Project.to_dict and Project.marshal_yaml."""

    def test_runtime_fields_are_not_written(self):
        """Working dir, environment and disabled services stay in memory."""
        data = make_project().with_services_disabled("api").to_dict()
        for key in ("working_dir", "environment", "disabled_services", "profiles", "compose_files"):
            assert key not in data
        assert list(data["services"]) == ["web"]

    def test_empty_collections_are_omitted(self):
        """Empty collections and unset fields do not appear."""
        data = make_project().to_dict()
        assert "volumes" not in data
        assert "secrets" not in data
        api = data["services"]["api"]
        assert "environment" not in api
        assert "build" not in api
        assert api["networks"] == {"front": None}

    def test_services_always_written(self):
        """An empty project still has a services key."""
        assert Project(name="empty").to_dict() == {"name": "empty", "services": {}}

    def test_extensions_are_inlined(self):
        """x- keys go back next to the fields of their owner."""
        data = make_project().to_dict()
        assert data["x-common"] == {"restart": "always"}
        assert data["services"]["web"]["x-team"] == "frontend"
        assert "extensions" not in data["services"]["web"]

    def test_unknown_keys_survive(self):
        """Keys the model does not define are written back."""
        assert make_project().to_dict()["services"]["web"]["stop_signal"] == "SIGTERM"

    def test_env_file_alias_and_unset_values(self):
        """Fields use their compose names and unset variables stay null."""
        project = Project.model_validate({
            "services": {"a": {"env_file": ["a.env"], "environment": ["DEBUG"]}},
        })
        service = project.to_dict()["services"]["a"]
        assert service["env_file"] == [{"path": "a.env", "required": True}]
        assert service["environment"] == {"DEBUG": None}

    def test_yaml_round_trip(self):
        """Writing and reading back keeps the enabled services."""
        project = make_project()
        document = yaml.safe_load(project.marshal_yaml())
        assert list(document)[:2] == ["name", "services"]
        reloaded = Project.model_validate(document)
        assert reloaded.service_names() == project.service_names()
        assert reloaded.extensions == project.extensions
        assert reloaded.services["web"].depends_on["api"].condition == "service_healthy"

    def test_yaml_is_bytes(self):
        output = make_project().marshal_yaml()
        assert isinstance(output, bytes)
        assert b"  web:" in output


class TestInterchangeView:
    """Tests for Project.marshal_json."""

    def test_json_layout(self):
        """Name and services always, resources when present, extensions at top level."""
        data = json.loads(make_project().marshal_json())
        assert data["name"] == "shop"
        assert set(data["services"]) == {"web", "api"}
        assert data["networks"] == {"front": {}}
        assert "volumes" not in data
        assert data["x-common"] == {"restart": "always"}

    def test_json_keys_sorted(self):
        raw = make_project().marshal_json().decode()
        assert raw.index('"name"') < raw.index('"networks"') < raw.index('"services"')


class TestExtensionKeys:
    """Tests for the x- prefix rule on extensions."""

    def test_reserved_key_rejected(self):
        """An extension named like a reserved key cannot be set."""
        with pytest.raises(ValidationError):
            Project(extensions={"services": {}})

    def test_collision_on_unvalidated_model(self):
        """A model built without validation still refuses a collision."""
        project = Project.model_construct(name="x", services={}, networks={}, volumes={},
                                          secrets={}, configs={}, extensions={"name": "clash"})
        with pytest.raises(SerializationError):
            project.marshal_json()
        with pytest.raises(SerializationError):
            project.to_dict()
