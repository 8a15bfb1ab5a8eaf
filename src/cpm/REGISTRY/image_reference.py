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
Image reference parsing and handling.
Parses image references like 'nginx:latest', 'docker.io/library/nginx:1.21'
or 'nginx@sha256:...', and pins them to a digest.
"""

import re
from dataclasses import dataclass, replace
from typing import Optional

from ..errors import ImageReferenceError

_COMPONENT = re.compile(r"^[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*$")
_DOMAIN = re.compile(
    r"^(?:localhost|[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?)*)"
    r"(?::[0-9]+)?$"
)
_TAG = re.compile(r"^[\w][\w.-]{0,127}$")
_DIGEST = re.compile(r"^[a-z0-9]+(?:[.+_-][a-z0-9]+)*:[a-zA-Z0-9=_-]+$")

# Hex length of the encoded part for the algorithms we know.
_DIGEST_LENGTHS = {"sha256": 64, "sha384": 96, "sha512": 128}


def validate_digest(digest: str) -> str:
    """
    Checks that ``digest`` looks like ``algorithm:encoded``.

    :param digest: Digest string, e.g. ``sha256:<64 hex chars>``.
    :return: The digest, unchanged.
    :raises ValueError: If the digest is malformed.
    """
    if not isinstance(digest, str) or not _DIGEST.fullmatch(digest):
        raise ValueError(f"invalid digest format: {digest!r}")
    algorithm, encoded = digest.split(":", 1)
    expected = _DIGEST_LENGTHS.get(algorithm)
    if expected is not None:
        if len(encoded) != expected or not re.fullmatch(r"[a-f0-9]+", encoded):
            raise ValueError(f"invalid {algorithm} digest: {digest!r}")
    return digest


@dataclass(frozen=True)
class ImageReference:
    """
    Parsed image reference.

    Examples:
        - nginx -> docker.io/library/nginx:latest
        - nginx:1.21 -> docker.io/library/nginx:1.21
        - myuser/myimage:v1 -> docker.io/myuser/myimage:v1
        - gcr.io/project/image@sha256:abc... -> gcr.io/project/image@sha256:abc...
    """

    registry: str
    repository: str
    tag: Optional[str] = None
    digest: Optional[str] = None

    DEFAULT_REGISTRY = "docker.io"
    LEGACY_REGISTRY = "index.docker.io"
    DEFAULT_TAG = "latest"

    @classmethod
    def parse(cls, reference: str) -> "ImageReference":
        """
        Parse an image reference string.

        Args:
            reference: Image reference string (e.g., 'nginx:latest', 'myuser/myimage:v1')

        Returns:
            Parsed ImageReference object.

        Raises:
            ImageReferenceError: If the reference is malformed.
        """
        if not reference:
            raise ImageReferenceError(reference, "empty image reference")
        original = reference

        digest = None
        if "@" in reference:
            reference, digest = reference.split("@", 1)
            try:
                validate_digest(digest)
            except ValueError as e:
                raise ImageReferenceError(original, str(e)) from e

        # A colon after the last slash separates the tag; before it, a port.
        tag = None
        last_colon = reference.rfind(":")
        if last_colon > reference.rfind("/"):
            tag = reference[last_colon + 1:]
            reference = reference[:last_colon]
            if not _TAG.fullmatch(tag):
                raise ImageReferenceError(original, f"invalid tag {tag!r}")

        parts = reference.split("/")
        first = parts[0]
        if len(parts) > 1 and ("." in first or ":" in first or first == "localhost" or first != first.lower()):
            registry = first
            path = parts[1:]
        else:
            registry = cls.DEFAULT_REGISTRY
            path = parts

        if not _DOMAIN.fullmatch(registry):
            raise ImageReferenceError(original, f"invalid registry {registry!r}")
        for component in path:
            if component != component.lower():
                raise ImageReferenceError(original, "repository name must be lowercase")
            if not _COMPONENT.fullmatch(component):
                raise ImageReferenceError(original, f"invalid repository component {component!r}")

        if registry == cls.LEGACY_REGISTRY:
            registry = cls.DEFAULT_REGISTRY
        if registry == cls.DEFAULT_REGISTRY and len(path) == 1:
            # Official images live under library/
            path = ["library"] + path

        # Use default tag if none specified and no digest
        if not tag and not digest:
            tag = cls.DEFAULT_TAG

        return cls(registry=registry, repository="/".join(path), tag=tag, digest=digest)

    @property
    def name(self) -> str:
        """Registry and repository, without tag or digest."""
        return f"{self.registry}/{self.repository}"

    @property
    def is_canonical(self) -> bool:
        """True when the reference is pinned to a digest."""
        return self.digest is not None

    def with_digest(self, digest: str) -> "ImageReference":
        """
        Pin the reference to ``digest``, keeping its tag.

        Raises:
            ValueError: If the digest is malformed.
        """
        return replace(self, digest=validate_digest(digest))

    @property
    def full_name(self) -> str:
        """Get full image name with registry, tag and digest."""
        name = self.name
        if self.tag:
            name = f"{name}:{self.tag}"
        if self.digest:
            name = f"{name}@{self.digest}"
        return name

    def __str__(self) -> str:
        return self.full_name

    def __repr__(self) -> str:
        return f"ImageReference({self.full_name})"
