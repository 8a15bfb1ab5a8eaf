"""
Enabling and disabling services by profile, by name, and by selection.
"""
import logging
from typing import TYPE_CHECKING, Iterable, List, Set

if TYPE_CHECKING:
    from ..MODELS.project import Project

logger = logging.getLogger(__name__)


class ProfileManager:
    """
    Moves services between the enabled and disabled sets of a project.

    The manager works on the project it is given; callers hand it a copy.
    """
    def __init__(self, project: "Project"):
        self.project = project

    def apply_profiles(self, profiles: List[str]) -> None:
        """
        Splits all services, enabled or not, according to ``profiles``.

        :param profiles: Active profile names. ``*`` enables every service.
        """
        enabled = {}
        disabled = {}
        for name, service in self.project.all_services().items():
            if service.has_profile(profiles):
                enabled[name] = service
            else:
                disabled[name] = service
        self.project.services = enabled
        self.project.disabled_services = disabled
        self.project.profiles = list(profiles)
        logger.debug("Profiles %s enable %s", profiles, sorted(enabled))

    def profiles_enabling(self, names: Iterable[str]) -> List[str]:
        """
        Active profiles extended with those of the named disabled services.
        """
        profiles = list(self.project.profiles)
        for name in names:
            if name in self.project.services:
                continue
            service = self.project.disabled_services.get(name)
            if service is None:
                continue
            for profile in service.profiles:
                if profile not in profiles:
                    profiles.append(profile)
        return profiles

    def disable(self, names: Iterable[str]) -> None:
        """
        Disables the named services and drops the edges pointing at them.
        Names that are not enabled are ignored.
        """
        for name in names:
            for service in self.project.services.values():
                service.depends_on.pop(name, None)
            service = self.project.services.pop(name, None)
            if service is not None:
                self.project.disabled_services[name] = service
                logger.debug("Disabled service %s", name)

    def restrict_to(self, selected: Set[str]) -> None:
        """
        Disables every enabled service outside ``selected`` and drops the
        edges that leave the selection.
        """
        excluded = [name for name in self.project.services if name not in selected]
        self.disable(excluded)
        for service in self.project.services.values():
            service.depends_on = {
                name: dependency
                for name, dependency in service.depends_on.items()
                if name in selected
            }
