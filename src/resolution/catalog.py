"""Offline resolver backed by a catalogue of known modules.

A catalogue file lists modules with their packaging and dependencies::

    modules:
      - coordinate: org.jenkins-ci.plugins.workflow:workflow-api:2.24
        packaging: hpi
        repository: JenkinsPublic
        dependencies:
          - org.jenkins-ci.plugins:scm-api:2.2.6

Plugin modules (``hpi``/``jpi``) publish a ``jar`` next to the archive
unless ``artifacts`` says otherwise.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import yaml

from buildmodel.errors import ConfigurationError, ResolutionError
from buildmodel.models import Coordinate, Repository
from constants import Constants
from .graph import GraphResolver, ModuleDescriptor

logger = logging.getLogger(__name__)


class CatalogResolver(GraphResolver):
    """Resolve against an in-memory module catalogue.

    Args:
        files_root: Directory prepended to the Maven-layout file paths.
    """

    def __init__(self, files_root: str = ""):
        self.files_root = files_root
        self._modules: Dict[Tuple[str, str, str], ModuleDescriptor] = {}
        self._files: Dict[Tuple[str, str, str, str], str] = {}

    def add(
        self,
        notation: str,
        packaging: str = Constants.LIBRARY_EXTENSION,
        dependencies: Iterable[str] = (),
        artifacts: Optional[Iterable[str]] = None,
        repository: Optional[str] = None,
        files: Optional[Dict[str, str]] = None,
    ) -> ModuleDescriptor:
        """Register one module version and return its descriptor."""
        coordinate = Coordinate.parse(notation)
        module = Coordinate(coordinate.group, coordinate.artifact, coordinate.version)
        if artifacts is None:
            published = {packaging}
            if packaging in Constants.PLUGIN_ARCHIVE_EXTENSIONS:
                published.add(Constants.LIBRARY_EXTENSION)
        else:
            published = set(artifacts)
        descriptor = ModuleDescriptor(
            coordinate=module,
            packaging=packaging,
            dependencies=[Coordinate.parse(dep) for dep in dependencies],
            artifacts=frozenset(published),
            repository=repository,
        )
        self._modules[(module.group, module.artifact, module.version)] = descriptor
        for extension, path in (files or {}).items():
            self._files[(module.group, module.artifact, module.version, extension)] = path
        return descriptor

    @classmethod
    def from_dict(cls, data: Dict[str, Any], files_root: str = "") -> "CatalogResolver":
        """Build a resolver from parsed catalogue data.

        Raises:
            ConfigurationError: If an entry lacks a coordinate.
        """
        resolver = cls(files_root=files_root)
        for entry in data.get("modules", []) or []:
            if not isinstance(entry, dict) or "coordinate" not in entry:
                raise ConfigurationError(f"Catalog entry without coordinate: {entry!r}")
            resolver.add(
                entry["coordinate"],
                packaging=entry.get("packaging", Constants.LIBRARY_EXTENSION),
                dependencies=entry.get("dependencies", []) or [],
                artifacts=entry.get("artifacts"),
                repository=entry.get("repository"),
                files=entry.get("files"),
            )
        return resolver

    @classmethod
    def from_file(cls, path: str, files_root: str = "") -> "CatalogResolver":
        """Load a YAML or JSON catalogue file.

        Raises:
            FileNotFoundError: If ``path`` does not exist.
            ConfigurationError: If the file cannot be parsed or is not a catalogue.
        """
        with open(path, "r", encoding="utf-8") as handle:
            try:
                if path.lower().endswith(".json"):
                    data = json.load(handle)
                else:
                    data = yaml.safe_load(handle)
            except (json.JSONDecodeError, yaml.YAMLError) as exc:
                raise ConfigurationError(f"Failed to parse {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"Catalog file {path} must contain a mapping")
        logger.debug("Loaded catalog from %s", path)
        return cls.from_dict(data, files_root=files_root)

    def describe(self, coordinate: Coordinate, repositories: Sequence[Repository]) -> ModuleDescriptor:
        names = [repo.name for repo in repositories]
        descriptor = self._modules.get((coordinate.group, coordinate.artifact, coordinate.version))
        if descriptor is None or (descriptor.repository and descriptor.repository not in names):
            raise ResolutionError(str(coordinate), names)
        return descriptor

    def locate(self, descriptor: ModuleDescriptor, coordinate: Coordinate, extension: str,
               repositories: Sequence[Repository]) -> str:
        key = (coordinate.group, coordinate.artifact, coordinate.version, extension)
        if key in self._files:
            return self._files[key]
        file_name = f"{coordinate.artifact}-{coordinate.version}"
        if coordinate.classifier:
            file_name += f"-{coordinate.classifier}"
        parts: List[str] = [
            *coordinate.group.split("."), coordinate.artifact, coordinate.version,
            f"{file_name}.{extension}",
        ]
        return os.path.join(self.files_root, *parts)
