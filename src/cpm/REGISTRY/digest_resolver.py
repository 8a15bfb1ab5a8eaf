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
Pinning service images to content digests.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Optional

from ..MODELS.service_definition import ServiceConfig
from ..errors import DigestResolutionError, ProjectError
from .image_reference import ImageReference

logger = logging.getLogger(__name__)

# Returns the digest (e.g. 'sha256:...') the reference currently points to.
DigestResolverFn = Callable[[ImageReference], str]


class DigestResolver:
    """
    Resolves service images to digest-pinned references, one thread per image.

    Every submitted resolution runs to completion even after another one
    failed; the first failure is raised once all of them are done.
    """

    def __init__(self, resolver: DigestResolverFn, max_workers: Optional[int] = None):
        """
        Args:
            resolver: Looks up the digest of an image reference.
            max_workers: Thread pool size. Defaults to the executor's default.
        """
        self.resolver = resolver
        self.max_workers = max_workers

    def resolve_services(self, services: Dict[str, ServiceConfig]) -> None:
        """
        Rewrites ``image`` of every service that has one, in place.

        Args:
            services: Services to update. Each worker writes only its own service.

        Raises:
            ImageReferenceError: If an image reference is malformed.
            DigestResolutionError: If the resolver fails or returns a bad digest.
        """
        pending = {name: service for name, service in services.items() if service.image}
        if not pending:
            return

        first_error: Optional[BaseException] = None
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self._resolve_service, service): name
                for name, service in pending.items()
            }
            for future in as_completed(futures):
                error = future.exception()
                if error is None:
                    continue
                if first_error is None:
                    first_error = error
                else:
                    logger.debug("Digest resolution for %s also failed: %s", futures[future], error)

        if first_error is not None:
            raise first_error

    def _resolve_service(self, service: ServiceConfig) -> None:
        ref = ImageReference.parse(service.image)
        if ref.is_canonical:
            return

        try:
            digest = self.resolver(ref)
        except ProjectError:
            raise
        except Exception as e:
            raise DigestResolutionError(service.name, service.image, str(e)) from e

        try:
            pinned = ref.with_digest(digest)
        except ValueError as e:
            raise DigestResolutionError(service.name, service.image, str(e)) from e

        logger.debug("Resolved %s for service %s to %s", service.image, service.name, pinned.full_name)
        service.image = pinned.full_name
