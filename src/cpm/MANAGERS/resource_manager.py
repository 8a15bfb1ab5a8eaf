"""
Pruning of top-level resources no enabled service refers to.
"""
import logging
from typing import TYPE_CHECKING, Dict, Set, TypeVar

if TYPE_CHECKING:
    from ..MODELS.project import Project

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _keep(resources: Dict[str, T], required: Set[str], kind: str) -> Dict[str, T]:
    kept = {name: value for name, value in resources.items() if name in required}
    dropped = sorted(set(resources) - set(kept))
    if dropped:
        logger.debug("Dropping unused %s: %s", kind, ", ".join(dropped))
    return kept


class ResourceManager:
    """
    Computes which networks, volumes, secrets and configs are in use.
    """
    def __init__(self, project: "Project"):
        self.project = project

    def required_resources(self) -> Dict[str, Set[str]]:
        """
        Names referenced by enabled services, per resource kind.

        Only named volumes count; bind mounts and anonymous volumes do not
        refer to a top-level volume.
        """
        required: Dict[str, Set[str]] = {
            "networks": set(),
            "volumes": set(),
            "secrets": set(),
            "configs": set(),
        }
        for service in self.project.services.values():
            required["networks"].update(service.networks)
            for volume in service.volumes:
                if volume.is_named_volume():
                    required["volumes"].add(volume.source)
            for secret in service.secrets:
                required["secrets"].add(secret.source)
            if service.build is not None:
                for secret in service.build.secrets:
                    required["secrets"].add(secret.source)
            for config in service.configs:
                required["configs"].add(config.source)
        return required

    def prune(self) -> None:
        """
        Drops the resources enabled services do not use. Referenced names
        missing from the project are ignored.
        """
        required = self.required_resources()
        self.project.networks = _keep(self.project.networks, required["networks"], "networks")
        self.project.volumes = _keep(self.project.volumes, required["volumes"], "volumes")
        self.project.secrets = _keep(self.project.secrets, required["secrets"], "secrets")
        self.project.configs = _keep(self.project.configs, required["configs"], "configs")
