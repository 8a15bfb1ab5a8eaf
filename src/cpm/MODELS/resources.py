"""
Models for the top-level resources services refer to: networks, volumes, secrets and configs.
"""
from typing import Dict, List, Optional

from .base import ComposeModel


class NetworkConfig(ComposeModel):
    name: Optional[str] = None
    driver: Optional[str] = None
    driver_opts: Dict[str, str] = {}
    external: Optional[bool] = None
    internal: Optional[bool] = None
    attachable: Optional[bool] = None
    labels: Dict[str, str] = {}


class VolumeConfig(ComposeModel):
    name: Optional[str] = None
    driver: Optional[str] = None
    driver_opts: Dict[str, str] = {}
    external: Optional[bool] = None
    labels: Dict[str, str] = {}


class FileObjectConfig(ComposeModel):
    """
    Common shape of secrets and configs: the content comes from a file, an
    environment variable or inline.
    """
    name: Optional[str] = None
    file: Optional[str] = None
    environment: Optional[str] = None
    content: Optional[str] = None
    external: Optional[bool] = None
    driver: Optional[str] = None
    labels: Dict[str, str] = {}


class SecretConfig(FileObjectConfig):
    pass


class ConfigObjConfig(FileObjectConfig):
    pass


class IncludeConfig(ComposeModel):
    """
    Provenance of an ``include`` entry.
    """
    path: List[str] = []
    project_directory: Optional[str] = None
    env_file: List[str] = []
