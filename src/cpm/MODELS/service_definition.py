"""
Models for defining services: dependencies, resource references, env files and build.
"""
from typing import Any, Dict, List, Optional, Union
from enum import Enum

from pydantic import Field, field_validator, model_validator

from .base import ComposeModel
from .mapping import MappingWithEquals

WILDCARD_PROFILE = "*"


class DependencyCondition(str, Enum):
    """
    State a dependency must reach before the dependent service starts.
    """
    SERVICE_STARTED = "service_started"
    SERVICE_HEALTHY = "service_healthy"
    SERVICE_COMPLETED_SUCCESSFULLY = "service_completed_successfully"


class ServiceDependency(ComposeModel):
    """
    One ``depends_on`` edge. A dependency that is not required may be missing
    from the project.
    """
    condition: DependencyCondition = DependencyCondition.SERVICE_STARTED
    required: bool = True
    restart: bool = False


class VolumeType(str, Enum):
    """
    Kinds of service mounts.
    """
    VOLUME = "volume"
    BIND = "bind"
    TMPFS = "tmpfs"
    NPIPE = "npipe"
    CLUSTER = "cluster"


class ServiceVolumeConfig(ComposeModel):
    """
    A mount in a service. Only ``volume`` mounts with a source refer to a
    top-level volume; the others are bind mounts or anonymous volumes.
    """
    type: VolumeType = VolumeType.VOLUME
    source: Optional[str] = None
    target: Optional[str] = None
    read_only: bool = False

    def is_named_volume(self) -> bool:
        return self.type == VolumeType.VOLUME and bool(self.source)


class FileReferenceConfig(ComposeModel):
    """
    A secret or config granted to a service (or to a build).
    """
    source: str
    target: Optional[str] = None
    uid: Optional[str] = None
    gid: Optional[str] = None
    mode: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def _from_name(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"source": data}
        return data


class ServiceNetworkConfig(ComposeModel):
    aliases: List[str] = []
    ipv4_address: Optional[str] = None
    ipv6_address: Optional[str] = None
    priority: Optional[int] = None


class EnvFile(ComposeModel):
    """
    An env file attached to a service. A missing file is only an error when
    it is required.
    """
    path: str
    required: bool = True

    @model_validator(mode="before")
    @classmethod
    def _from_path(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"path": data}
        return data


class BuildConfig(ComposeModel):
    """
    How to build the service image.
    """
    context: Optional[str] = None
    dockerfile: Optional[str] = None
    args: MappingWithEquals = Field(default_factory=MappingWithEquals)
    target: Optional[str] = None
    secrets: List[FileReferenceConfig] = []


class ServiceConfig(ComposeModel):
    """
    The full definition of a single service.
    """
    # Taken from the key in `services`, never written out
    name: str = Field(default="", exclude=True)
    profiles: List[str] = []

    # Image
    image: Optional[str] = None
    build: Optional[BuildConfig] = None

    # Execution
    command: Optional[Union[str, List[str]]] = None
    entrypoint: Optional[Union[str, List[str]]] = None
    working_dir: Optional[str] = None
    user: Optional[str] = None

    # Environment
    environment: MappingWithEquals = Field(default_factory=MappingWithEquals)
    env_files: List[EnvFile] = Field(default_factory=list, alias="env_file")

    # Lifecycle
    depends_on: Dict[str, ServiceDependency] = {}
    restart: Optional[str] = None

    # Resources
    networks: Dict[str, Optional[ServiceNetworkConfig]] = {}
    volumes: List[ServiceVolumeConfig] = []
    secrets: List[FileReferenceConfig] = []
    configs: List[FileReferenceConfig] = []
    ports: List[Any] = []

    # Metadata
    container_name: Optional[str] = None
    hostname: Optional[str] = None
    labels: Dict[str, str] = {}

    @field_validator("env_files", mode="before")
    @classmethod
    def _env_file_list(cls, value: Any) -> Any:
        if isinstance(value, (str, dict)):
            return [value]
        return value

    @field_validator("depends_on", mode="before")
    @classmethod
    def _depends_on_mapping(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return {name: {} for name in value}
        return value

    @field_validator("networks", mode="before")
    @classmethod
    def _networks_mapping(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return {name: None for name in value}
        return value

    def has_profile(self, profiles: List[str]) -> bool:
        """
        Tells whether the service is enabled for the requested profiles.

        A service without profiles is always enabled; otherwise one of its
        profiles must be requested. The ``*`` profile enables every service.

        :param profiles: Requested profile names.
        :return: True if the service is enabled.
        """
        if not self.profiles:
            return True
        for profile in profiles:
            if profile == WILDCARD_PROFILE or profile in self.profiles:
                return True
        return False
