"""Resolver reading module metadata from Maven repositories over HTTP.

POMs are fetched from each configured repository in order. Parent POMs are
followed for properties and ``dependencyManagement`` versions. Only
``compile`` and ``runtime`` dependencies that are not optional take part in
the transitive walk.
"""
from __future__ import annotations

import logging
import os
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import requests

from buildmodel.errors import ResolutionError
from buildmodel.models import Coordinate, Repository
from common import http_client
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from constants import Constants
from .graph import GraphResolver, ModuleDescriptor

logger = logging.getLogger(__name__)

_PROPERTY = re.compile(r"\$\{([^}]+)\}")
_TRANSITIVE_SCOPES = (None, "compile", "runtime")
# Guards against parent chains that loop back on themselves
_MAX_PARENT_DEPTH = 16
# Packagings whose main artifact is published as a jar
_JAR_PACKAGINGS = frozenset(["bundle", "maven-plugin", "ejb", "eclipse-plugin", "jar"])


@dataclass
class PomModel:
    """The parts of a POM the resolver needs, with parents already merged."""

    coordinate: Coordinate
    packaging: str = Constants.LIBRARY_EXTENSION
    properties: Dict[str, str] = field(default_factory=dict)
    managed_versions: Dict[Tuple[str, str], str] = field(default_factory=dict)
    dependencies: List[Dict[str, Optional[str]]] = field(default_factory=list)
    repository: Optional[Repository] = None


def artifact_extension(packaging: str) -> str:
    """File extension of the main artifact for a POM <packaging> value."""
    if packaging in _JAR_PACKAGINGS:
        return Constants.LIBRARY_EXTENSION
    return packaging


def _strip_namespaces(root: ET.Element) -> ET.Element:
    for element in root.iter():
        if isinstance(element.tag, str) and "}" in element.tag:
            element.tag = element.tag.split("}", 1)[1]
    return root


def _text(element: Optional[ET.Element], path: str) -> Optional[str]:
    if element is None:
        return None
    node = element.find(path)
    if node is None or node.text is None:
        return None
    value = node.text.strip()
    return value or None


def _dependency_entries(container: Optional[ET.Element]) -> List[Dict[str, Optional[str]]]:
    if container is None:
        return []
    entries = []
    for dependency in container.findall("dependency"):
        entries.append({
            "groupId": _text(dependency, "groupId"),
            "artifactId": _text(dependency, "artifactId"),
            "version": _text(dependency, "version"),
            "scope": _text(dependency, "scope"),
            "optional": _text(dependency, "optional"),
            "classifier": _text(dependency, "classifier"),
        })
    return entries


class MavenRepositoryResolver(GraphResolver):
    """Resolve coordinates against the build's Maven repositories.

    Args:
        cache_dir: Where downloaded artifacts are stored.
        download: Download artifact files; otherwise their URLs are reported.
    """

    def __init__(self, cache_dir: str = Constants.DEFAULT_CACHE_DIR, download: bool = False):
        self.cache_dir = os.path.expanduser(cache_dir)
        self.download = download
        self._poms: Dict[Tuple[str, str, str], PomModel] = {}

    # ---------- POM loading ----------

    def _fetch_pom(self, coordinate: Coordinate, repositories: Sequence[Repository]) -> Tuple[ET.Element, Repository]:
        for repository in repositories:
            url = repository.artifact_url(Coordinate(coordinate.group, coordinate.artifact, coordinate.version),
                                          Constants.POM_EXTENSION)
            status_code, _, text = http_client.robust_get(url)
            if status_code != 200 or not text:
                if is_debug_enabled(logger):
                    logger.debug(
                        "POM not found in repository",
                        extra=extra_context(
                            event="pom_lookup", component="maven", outcome="not_found",
                            status_code=status_code, target=safe_url(url), coordinate=str(coordinate),
                        ),
                    )
                continue
            try:
                return _strip_namespaces(ET.fromstring(text)), repository
            except ET.ParseError as exc:
                logger.warning("Unparseable POM for %s at %s: %s", coordinate, safe_url(url), exc)
                continue
        raise ResolutionError(str(coordinate), [repo.name for repo in repositories])

    def load_pom(self, coordinate: Coordinate, repositories: Sequence[Repository], depth: int = 0) -> PomModel:
        """Fetch, parse and merge a POM with its parents.

        Raises:
            ResolutionError: If the POM or one of its parents cannot be found.
        """
        key = (coordinate.group, coordinate.artifact, coordinate.version)
        if key in self._poms:
            return self._poms[key]
        root, repository = self._fetch_pom(coordinate, repositories)

        parent: Optional[PomModel] = None
        parent_node = root.find("parent")
        if parent_node is not None and depth < _MAX_PARENT_DEPTH:
            parent_coordinate = Coordinate(
                _text(parent_node, "groupId") or "",
                _text(parent_node, "artifactId") or "",
                _text(parent_node, "version") or "",
            )
            if all((parent_coordinate.group, parent_coordinate.artifact, parent_coordinate.version)):
                parent = self.load_pom(parent_coordinate, repositories, depth + 1)

        properties: Dict[str, str] = dict(parent.properties) if parent else {}
        properties_node = root.find("properties")
        if properties_node is not None:
            for prop in properties_node:
                if isinstance(prop.tag, str):
                    properties[prop.tag] = (prop.text or "").strip()
        group = _text(root, "groupId") or (parent.coordinate.group if parent else coordinate.group)
        version = _text(root, "version") or (parent.coordinate.version if parent else coordinate.version)
        properties.update({
            "project.groupId": group,
            "project.artifactId": coordinate.artifact,
            "project.version": version,
            "pom.version": version,
            "version": version,
        })
        if parent:
            properties.update({
                "project.parent.groupId": parent.coordinate.group,
                "project.parent.version": parent.coordinate.version,
                "parent.version": parent.coordinate.version,
            })

        managed: Dict[Tuple[str, str], str] = dict(parent.managed_versions) if parent else {}
        for entry in _dependency_entries(root.find("dependencyManagement/dependencies")):
            if entry["scope"] == "import":
                logger.debug("Skipping BOM import %s:%s in %s", entry["groupId"], entry["artifactId"], coordinate)
                continue
            entry_group = self._interpolate(entry["groupId"], properties)
            entry_artifact = self._interpolate(entry["artifactId"], properties)
            entry_version = self._interpolate(entry["version"], properties)
            if entry_group and entry_artifact and entry_version:
                managed[(entry_group, entry_artifact)] = entry_version

        dependencies = list(parent.dependencies) if parent else []
        dependencies.extend(_dependency_entries(root.find("dependencies")))

        model = PomModel(
            coordinate=coordinate,
            packaging=_text(root, "packaging") or Constants.LIBRARY_EXTENSION,
            properties=properties,
            managed_versions=managed,
            dependencies=dependencies,
            repository=repository,
        )
        self._poms[key] = model
        return model

    @staticmethod
    def _interpolate(value: Optional[str], properties: Dict[str, str]) -> Optional[str]:
        """Substitute ``${name}`` references, leaving unknown ones untouched."""
        if value is None:
            return None
        for _ in range(_MAX_PARENT_DEPTH):
            substituted = _PROPERTY.sub(lambda m: properties.get(m.group(1), m.group(0)), value)
            if substituted == value:
                break
            value = substituted
        return value

    # ---------- GraphResolver ----------

    def describe(self, coordinate: Coordinate, repositories: Sequence[Repository]) -> ModuleDescriptor:
        model = self.load_pom(coordinate, repositories)
        dependencies: List[Coordinate] = []
        for entry in model.dependencies:
            scope = self._interpolate(entry["scope"], model.properties)
            optional = (self._interpolate(entry["optional"], model.properties) or "").lower() == "true"
            if scope not in _TRANSITIVE_SCOPES or optional:
                continue
            group = self._interpolate(entry["groupId"], model.properties)
            artifact = self._interpolate(entry["artifactId"], model.properties)
            if not group or not artifact:
                continue
            version = self._interpolate(entry["version"], model.properties) or model.managed_versions.get((group, artifact))
            if not version or "${" in version:
                logger.debug("No usable version for %s:%s in %s, skipping", group, artifact, coordinate)
                continue
            dependencies.append(Coordinate(group, artifact, version, None,
                                           self._interpolate(entry["classifier"], model.properties)))
        return ModuleDescriptor(
            coordinate=coordinate,
            packaging=artifact_extension(model.packaging),
            dependencies=dependencies,
            repository=model.repository.name if model.repository else None,
        )

    def locate(self, descriptor: ModuleDescriptor, coordinate: Coordinate, extension: str,
               repositories: Sequence[Repository]) -> str:
        """URL of the artifact, or the local file when downloading.

        Raises:
            ResolutionError: When downloading and no repository serves the file.
        """
        ordered = sorted(repositories, key=lambda repo: repo.name != descriptor.repository)
        if not self.download:
            return ordered[0].artifact_url(coordinate, extension) if ordered else ""
        relative = Repository("cache", "").artifact_url(coordinate, extension).lstrip("/")
        destination = os.path.join(self.cache_dir, relative)
        for repository in ordered:
            url = repository.artifact_url(coordinate, extension)
            try:
                if http_client.download_file(url, destination):
                    return destination
            except requests.RequestException as exc:
                logger.warning("Download of %s from %s failed: %s", coordinate, repository.name, exc)
        raise ResolutionError(f"{coordinate.module_version}@{extension}", [repo.name for repo in repositories])
