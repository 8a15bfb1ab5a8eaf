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
Exceptions raised by project queries and transformations.
"""
from typing import Optional


class ProjectError(Exception):
    """Base class for every error raised by this package."""


class ServiceNotFoundError(ProjectError, LookupError):
    """
    A requested service does not exist in the project.
    """

    def __init__(self, name: str):
        super().__init__(f"no such service: {name}")
        self.name = name


class ServiceDisabledError(ProjectError, LookupError):
    """
    A requested service exists, but only among the disabled services.
    """

    def __init__(self, name: str):
        super().__init__(f"service {name} is disabled")
        self.name = name


class MissingDependencyError(ServiceNotFoundError):
    """
    A required ``depends_on`` edge points at a service the project does not have.
    """

    def __init__(self, name: str, dependent: Optional[str] = None):
        super().__init__(name)
        self.dependent = dependent


class EnvFileNotFoundError(ProjectError, FileNotFoundError):
    """
    A required env file does not exist.
    """

    def __init__(self, path: str):
        super().__init__(f"env file {path} not found")
        self.path = path


class EnvFileError(ProjectError):
    """
    An env file exists but could not be read or parsed.
    """

    def __init__(self, path: str, reason: str):
        super().__init__(f"failed to read {path}: {reason}")
        self.path = path


class ImageReferenceError(ProjectError, ValueError):
    """
    An image reference string is malformed.
    """

    def __init__(self, reference: str, reason: str):
        super().__init__(f"invalid image reference {reference!r}: {reason}")
        self.reference = reference


class DigestResolutionError(ProjectError):
    """
    The digest resolver failed, or returned something that is not a digest.
    """

    def __init__(self, service: str, reference: str, reason: str):
        super().__init__(f"service {service}: cannot resolve digest for {reference}: {reason}")
        self.service = service
        self.reference = reference


class SerializationError(ProjectError):
    """Raised when the project cannot be rendered."""
