"""
Managers for handling environment variables and .env file resolution.
"""
import logging
import os
from typing import Callable, Mapping, Optional

from ..MODELS.mapping import MappingWithEquals, mapping_lookup
from ..MODELS.service_definition import ServiceConfig
from ..PARSERS.env_parser import EnvFileParser
from ..errors import EnvFileError, EnvFileNotFoundError

logger = logging.getLogger(__name__)


class EnvironmentManager:
    """
    Computes the final environment of services from the project variables,
    their env files and their own ``environment`` section.
    """
    def __init__(self,
                 project_environment: Mapping[str, str],
                 resolve_path: Callable[[str], str] = os.path.abspath):
        """
        Initializes the environment manager.

        :param project_environment: Project-level variables.
        :param resolve_path: Turns an env file path into an absolute path.
        """
        self.project_environment = project_environment
        self.resolve_path = resolve_path
        self.parser = EnvFileParser()

    def resolve_service(self, service: ServiceConfig, discard_env_files: bool = False) -> ServiceConfig:
        """
        Resolves the environment of a service in place.

        Env files are read in order, later files overriding earlier ones, and
        the service's own ``environment`` overrides them all.

        :param service: The service to update.
        :param discard_env_files: Drop the env file list once it has been read.
        :return: The same service.
        :raises EnvFileNotFoundError: If a required env file does not exist.
        :raises EnvFileError: If an env file cannot be read or parsed.
        """
        project_lookup = mapping_lookup(self.project_environment)
        service.environment = service.environment.resolve(project_lookup)

        environment = MappingWithEquals()

        def lookup(name: str) -> Optional[str]:
            value = environment.get(name)
            if value is not None:
                return value
            return project_lookup(name)

        for env_file in service.env_files:
            path = self.resolve_path(env_file.path)
            if not os.path.exists(path):
                if env_file.required:
                    raise EnvFileNotFoundError(path)
                logger.debug("Skipping optional env file %s for service %s", path, service.name)
                continue
            try:
                file_vars = self.parser.parse(path, lookup)
            except (OSError, UnicodeDecodeError, ValueError) as e:
                raise EnvFileError(path, str(e)) from e
            environment.override_by(file_vars)

        service.environment = environment.override_by(service.environment)

        if discard_env_files:
            service.env_files = []
        return service
