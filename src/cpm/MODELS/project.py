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
The project: every service and resource of a resolved compose configuration.

A project is treated as immutable. Each ``with_*`` operation deep copies the
whole project, changes the copy and returns it; the receiver is left as it was.
"""
import logging
import os
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Set, Tuple

from pydantic import Field, field_validator, model_validator

from ..CONVERTERS.serializers import ProjectSerializer
from ..MANAGERS.environment_manager import EnvironmentManager
from ..MANAGERS.profile_manager import ProfileManager
from ..MANAGERS.resource_manager import ResourceManager
from ..REGISTRY.digest_resolver import DigestResolver, DigestResolverFn
from ..RUNNERS.dependency_resolver import DependencyPolicy, DependencyResolver, ServiceFunc
from ..errors import ServiceDisabledError, ServiceNotFoundError
from .base import ComposeModel
from .resources import ConfigObjConfig, IncludeConfig, NetworkConfig, SecretConfig, VolumeConfig
from .service_definition import ServiceConfig

logger = logging.getLogger(__name__)


class Project(ComposeModel):
    """
    Complete configuration for a multi-service stack.
    Equivalent to a loaded and merged set of compose files.
    """
    _keep_empty: ClassVar[Tuple[str, ...]] = ("services",)

    name: str = ""
    working_dir: str = Field(default="", exclude=True)
    services: Dict[str, ServiceConfig] = {}
    networks: Dict[str, NetworkConfig] = {}
    volumes: Dict[str, VolumeConfig] = {}
    secrets: Dict[str, SecretConfig] = {}
    configs: Dict[str, ConfigObjConfig] = {}

    # Runtime state, never written out
    include_references: Dict[str, List[IncludeConfig]] = Field(default_factory=dict, exclude=True)
    compose_files: List[str] = Field(default_factory=list, exclude=True)
    environment: Dict[str, str] = Field(default_factory=dict, exclude=True)
    disabled_services: Dict[str, ServiceConfig] = Field(default_factory=dict, exclude=True)
    profiles: List[str] = Field(default_factory=list, exclude=True)

    @field_validator("services", "disabled_services", mode="before")
    @classmethod
    def _name_services(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        named = {}
        for name, service in value.items():
            if service is None:
                service = {}
            if isinstance(service, dict) and not service.get("name"):
                service = dict(service, name=name)
            elif isinstance(service, ServiceConfig) and not service.name:
                service = service.model_copy(update={"name": name})
            named[name] = service
        return named

    @field_validator("networks", "volumes", "secrets", "configs", mode="before")
    @classmethod
    def _empty_resources(cls, value: Any) -> Any:
        # `networks: {backend: }` declares a resource with default settings.
        if isinstance(value, dict):
            return {name: ({} if resource is None else resource) for name, resource in value.items()}
        return value

    @model_validator(mode="after")
    def _check_disjoint(self) -> "Project":
        both = set(self.services) & set(self.disabled_services)
        if both:
            raise ValueError(f"services both enabled and disabled: {', '.join(sorted(both))}")
        return self

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def service_names(self) -> List[str]:
        """Names of all enabled services, sorted."""
        return sorted(self.services)

    def disabled_service_names(self) -> List[str]:
        return sorted(self.disabled_services)

    def network_names(self) -> List[str]:
        return sorted(self.networks)

    def volume_names(self) -> List[str]:
        return sorted(self.volumes)

    def secret_names(self) -> List[str]:
        return sorted(self.secrets)

    def config_names(self) -> List[str]:
        return sorted(self.configs)

    def get_service(self, name: str) -> ServiceConfig:
        """
        Retrieves an enabled service by name.

        :raises ServiceDisabledError: If the service exists but is disabled.
        :raises ServiceNotFoundError: If there is no such service.
        """
        service = self.services.get(name)
        if service is None:
            if name in self.disabled_services:
                raise ServiceDisabledError(name)
            raise ServiceNotFoundError(name)
        return service

    def get_disabled_service(self, name: str) -> ServiceConfig:
        service = self.disabled_services.get(name)
        if service is None:
            raise ServiceNotFoundError(name)
        return service

    def get_services(self, *names: str) -> Dict[str, ServiceConfig]:
        """
        Retrieves services by name, or all enabled services when no name is given.
        """
        if not names:
            return self.services
        return {name: self.get_service(name) for name in names}

    def all_services(self) -> Dict[str, ServiceConfig]:
        """Enabled and disabled services together."""
        return {**self.services, **self.disabled_services}

    def get_dependents_for_service(self, service: ServiceConfig) -> List[str]:
        """Names of the enabled services depending on ``service``."""
        return list(DependencyResolver(self.services).dependents_for_service(service.name))

    def relative_path(self, path: str) -> str:
        """
        Resolves a path against the project working directory.

        :param path: Absolute, relative, or ``~``-prefixed path.
        :return: An absolute path.
        """
        if not path:
            raise ValueError("empty path")
        if path.startswith("~"):
            home = os.path.expanduser("~")
            rest = path[1:].lstrip("/\\")
            path = os.path.join(home, rest) if rest else home
        if os.path.isabs(path):
            return path
        return os.path.abspath(os.path.join(self.working_dir, path))

    def for_each_service(self,
                         names: Iterable[str],
                         visit: ServiceFunc,
                         policy: DependencyPolicy = DependencyPolicy.INCLUDE_DEPENDENCIES,
                         seen: Optional[Set[str]] = None) -> None:
        """
        Runs ``visit`` on the named services and, per ``policy``, on their
        dependencies or dependents, each once, those first.

        :param names: Services to start from. All enabled services when empty.
        :param visit: Called as ``visit(name, service_copy)``.
        :param policy: Edges to follow.
        :param seen: Names already walked, updated in place.
        :raises ServiceNotFoundError: If a requested service does not exist.
        :raises MissingDependencyError: If a required dependency does not exist.
        """
        DependencyResolver(self.services).walk(names, visit, policy, seen)

    # ------------------------------------------------------------------
    # Transformations
    # ------------------------------------------------------------------

    def deep_copy(self) -> "Project":
        return self.model_copy(deep=True)

    def with_profiles(self, profiles: List[str]) -> "Project":
        """
        Enables the services matching ``profiles`` and disables the others.
        """
        project = self.deep_copy()
        ProfileManager(project).apply_profiles(profiles)
        return project

    def with_services_enabled(self, *names: str) -> "Project":
        """
        Enables the named services by activating their profiles, which may
        enable other services sharing those profiles. Environments are then
        resolved again and env file lists dropped.

        :raises EnvFileNotFoundError: If a required env file does not exist.
        """
        project = self.deep_copy()
        if not names:
            return project
        manager = ProfileManager(project)
        manager.apply_profiles(manager.profiles_enabling(names))
        return project.with_services_environment_resolved(discard_env_files=True)

    def with_selected_services(self,
                               names: Iterable[str],
                               policy: DependencyPolicy = DependencyPolicy.INCLUDE_DEPENDENCIES) -> "Project":
        """
        Restricts the project to the named services and, per ``policy``,
        their dependencies or dependents. Edges to services left out are
        dropped.

        :raises ServiceNotFoundError: If a requested service does not exist.
        :raises MissingDependencyError: If a required dependency does not exist.
        """
        project = self.deep_copy()
        names = list(names)
        if not names:
            return project
        selected: Set[str] = set()
        self.for_each_service(names, lambda name, _: selected.add(name), policy)
        logger.debug("Selected services %s", sorted(selected))
        ProfileManager(project).restrict_to(selected)
        return project

    def with_services_disabled(self, *names: str) -> "Project":
        """
        Disables the named services and removes every dependency on them.
        """
        project = self.deep_copy()
        ProfileManager(project).disable(names)
        return project

    def without_unnecessary_resources(self) -> "Project":
        """
        Drops the networks, volumes, secrets and configs no enabled service uses.
        """
        project = self.deep_copy()
        ResourceManager(project).prune()
        return project

    def with_services_environment_resolved(self, discard_env_files: bool = False) -> "Project":
        """
        Computes each enabled service's environment from the project
        variables, its env files and its own ``environment``.

        :param discard_env_files: Clear ``env_file`` once read.
        :raises EnvFileNotFoundError: If a required env file does not exist.
        :raises EnvFileError: If an env file cannot be read or parsed.
        """
        project = self.deep_copy()
        manager = EnvironmentManager(project.environment, project.relative_path)
        for service in project.services.values():
            manager.resolve_service(service, discard_env_files)
        return project

    def with_images_resolved(self, resolver: DigestResolverFn, max_workers: Optional[int] = None) -> "Project":
        """
        Pins every enabled service image to the digest returned by ``resolver``.
        Images already pinned are left as they are.

        :param resolver: Called with an ImageReference, returns its digest.
        :param max_workers: Number of concurrent resolutions.
        :raises ImageReferenceError: If an image reference is malformed.
        :raises DigestResolutionError: If a resolution fails.
        """
        project = self.deep_copy()
        DigestResolver(resolver, max_workers).resolve_services(project.services)
        return project

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return ProjectSerializer(self).to_dict()

    def marshal_yaml(self, indent: int = 2) -> bytes:
        """Renders the project as a compose YAML document."""
        return ProjectSerializer(self).to_yaml(indent)

    def marshal_json(self) -> bytes:
        """Renders the project as a JSON object."""
        return ProjectSerializer(self).to_json()
