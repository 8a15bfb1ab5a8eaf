"""
Unit tests for loading a project and querying it.
"""
import os

import pytest
from pydantic import ValidationError

from cpm.MODELS.mapping import MappingWithEquals
from cpm.MODELS.project import Project
from cpm.MODELS.service_definition import DependencyCondition, ServiceConfig, VolumeType
from cpm.errors import ServiceDisabledError, ServiceNotFoundError


@pytest.fixture
def project():
    return Project.model_validate({
        "name": "shop",
        "working_dir": "/srv/shop",
        "services": {
            "web": {"image": "nginx", "depends_on": ["api"], "networks": ["front"]},
            "api": {"image": "api", "env_file": "api.env", "networks": {"front": {"aliases": ["backend"]}}},
            "db": None,
        },
        "disabled_services": {"debug": {"image": "busybox", "profiles": ["dev"]}},
        "networks": {"front": None, "back": {"driver": "overlay"}},
        "configs": {"nginx_conf": {"file": "./nginx.conf"}},
        "include_references": {"/srv/shop/compose.yml": [{"path": ["common.yml"]}]},
        "compose_files": ["/srv/shop/compose.yml"],
    })


class TestLoading:
    """Tests for validating a project from a plain mapping."""

    def test_service_names_from_keys(self, project):
        """Services get their name from their key."""
        assert project.services["web"].name == "web"
        assert project.services["db"].name == "db"
        assert project.disabled_services["debug"].name == "debug"

    def test_short_forms(self, project):
        """List and string forms validate into their long forms."""
        web = project.services["web"]
        assert web.depends_on["api"].condition == DependencyCondition.SERVICE_STARTED
        assert web.depends_on["api"].required is True
        assert web.networks == {"front": None}
        api = project.services["api"]
        assert api.env_files[0].path == "api.env"
        assert api.env_files[0].required is True
        assert api.networks["front"].aliases == ["backend"]

    def test_empty_resource_declaration(self, project):
        """A resource declared without settings gets the defaults."""
        assert project.networks["front"].driver is None
        assert project.networks["back"].driver == "overlay"

    def test_provenance_fields(self, project):
        assert project.compose_files == ["/srv/shop/compose.yml"]
        assert project.include_references["/srv/shop/compose.yml"][0].path == ["common.yml"]

    def test_service_defaults(self):
        """A bare service has empty collections and no image."""
        service = ServiceConfig()
        assert isinstance(service.environment, MappingWithEquals)
        assert service.depends_on == {}
        assert service.image is None

    def test_volume_type(self):
        service = ServiceConfig.model_validate({"volumes": [{"type": "bind", "source": ".", "target": "/app"}]})
        assert service.volumes[0].type == VolumeType.BIND
        assert not service.volumes[0].is_named_volume()

    def test_enabled_and_disabled_overlap_rejected(self):
        """A service cannot be both enabled and disabled."""
        with pytest.raises(ValidationError):
            Project.model_validate({"services": {"a": {}}, "disabled_services": {"a": {}}})


class TestQueries:
    """Tests for the read-only queries of Project."""

    def test_names_are_sorted(self, project):
        assert project.service_names() == ["api", "db", "web"]
        assert project.disabled_service_names() == ["debug"]
        assert project.network_names() == ["back", "front"]
        assert project.volume_names() == []
        assert project.secret_names() == []
        assert project.config_names() == ["nginx_conf"]

    def test_get_service(self, project):
        assert project.get_service("web").image == "nginx"

    def test_get_service_disabled(self, project):
        """A disabled service is reported as such, not as missing."""
        with pytest.raises(ServiceDisabledError) as info:
            project.get_service("debug")
        assert str(info.value) == "service debug is disabled"

    def test_get_service_missing(self, project):
        with pytest.raises(ServiceNotFoundError) as info:
            project.get_service("nope")
        assert str(info.value) == "no such service: nope"
        assert isinstance(info.value, LookupError)

    def test_get_disabled_service_missing(self, project):
        with pytest.raises(ServiceNotFoundError):
            project.get_disabled_service("web")

    def test_get_services(self, project):
        """No names means every enabled service."""
        assert set(project.get_services()) == {"web", "api", "db"}
        assert list(project.get_services("db", "web")) == ["db", "web"]
        with pytest.raises(ServiceDisabledError):
            project.get_services("web", "debug")

    def test_all_services(self, project):
        assert set(project.all_services()) == {"web", "api", "db", "debug"}

    def test_get_dependents_for_service(self, project):
        assert project.get_dependents_for_service(project.services["api"]) == ["web"]


class TestRelativePath:
    """Tests for Project.relative_path."""

    def test_relative(self, project):
        assert project.relative_path("api.env") == os.path.abspath("/srv/shop/api.env")
        assert project.relative_path("../shared/.env") == os.path.abspath("/srv/shared/.env")

    def test_absolute(self, project):
        assert project.relative_path("/etc/app.env") == "/etc/app.env"

    def test_home(self, project):
        """A leading ~ is the user home directory."""
        home = os.path.expanduser("~")
        assert project.relative_path("~") == home
        assert project.relative_path("~/app.env") == os.path.join(home, "app.env")

    def test_empty(self, project):
        with pytest.raises(ValueError):
            project.relative_path("")
