"""
Dependency graph traversal for services.
"""
import logging
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from ..MODELS.service_definition import ServiceConfig, ServiceDependency
from ..errors import MissingDependencyError, ServiceNotFoundError

logger = logging.getLogger(__name__)

ServiceFunc = Callable[[str, ServiceConfig], None]


class DependencyPolicy(str, Enum):
    """
    Which edges a walk follows from a service.
    """
    INCLUDE_DEPENDENCIES = "dependencies"
    INCLUDE_DEPENDENTS = "dependents"
    IGNORE_DEPENDENCIES = "none"


class DependencyResolver:
    """
    Walks the services of a project along their ``depends_on`` edges.

    The walk is depth first and post-order: whatever a service leads to under
    the chosen policy is visited before the service itself. Every service is
    visited at most once per walk, which also breaks cycles.
    """
    def __init__(self, services: Dict[str, ServiceConfig]):
        """
        :param services: Enabled services, by name.
        """
        self.services = services

    def dependents_for_service(self, name: str) -> Dict[str, ServiceDependency]:
        """
        Finds the services depending on ``name``.

        :param name: The service depended upon.
        :return: Dependent service names and the edge each declares.
        """
        dependents = {}
        for service_name, service in self.services.items():
            dependency = service.depends_on.get(name)
            if dependency is not None:
                dependents[service_name] = dependency
        return dependents

    def walk(self,
             names: Iterable[str],
             visit: ServiceFunc,
             policy: DependencyPolicy = DependencyPolicy.INCLUDE_DEPENDENCIES,
             seen: Optional[Set[str]] = None) -> None:
        """
        Calls ``visit(name, service)`` on the named services and, depending on
        ``policy``, on their transitive dependencies or dependents.

        ``visit`` gets a deep copy of the service. Exceptions raised by
        ``visit`` stop the walk; services visited so far stay visited.

        :param names: Services to start from. All enabled services when empty.
        :param visit: Callback invoked once per service.
        :param policy: Edges to follow.
        :param seen: Names already walked. Updated in place.
        :raises ServiceNotFoundError: If a requested service does not exist.
        :raises MissingDependencyError: If a required dependency does not exist.
        """
        names = list(names) or list(self.services)
        if seen is None:
            seen = set()

        self._check_missing(names)

        # (name, expanded): a name is expanded once its edges are on the stack.
        stack: List[Tuple[str, bool]] = [(name, False) for name in reversed(names)]
        while stack:
            name, expanded = stack.pop()
            service = self.services.get(name)
            if expanded:
                visit(name, service.model_copy(deep=True))
                continue
            if service is None or name in seen:
                continue
            seen.add(name)
            stack.append((name, True))

            edges = self._edges(name, service, policy)
            self._check_missing(edges, edges, name)
            stack.extend((edge, False) for edge in reversed(list(edges)))

    def _edges(self, name: str, service: ServiceConfig, policy: DependencyPolicy) -> Dict[str, ServiceDependency]:
        if policy == DependencyPolicy.INCLUDE_DEPENDENCIES:
            return service.depends_on
        if policy == DependencyPolicy.INCLUDE_DEPENDENTS:
            return self.dependents_for_service(name)
        return {}

    def _check_missing(self,
                       names: Iterable[str],
                       edges: Optional[Dict[str, ServiceDependency]] = None,
                       dependent: Optional[str] = None) -> None:
        """
        Fails on the first missing name that is requested directly or through
        a required edge. Missing optional dependencies are skipped.
        """
        for name in names:
            if name in self.services:
                continue
            if edges is None:
                raise ServiceNotFoundError(name)
            if edges[name].required:
                raise MissingDependencyError(name, dependent)
            logger.debug("Skipping optional dependency %s of %s: no such service", name, dependent)
