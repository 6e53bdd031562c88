"""Transitive dependency walk shared by the resolver back-ends.

Back-ends only describe single modules; the walk, exclusions and
highest-version conflict resolution live here.
"""
from __future__ import annotations

import logging
from abc import abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from buildmodel.api import ArtifactResolver
from buildmodel.errors import ResolutionError
from buildmodel.models import Coordinate, Exclusion, Repository, ResolvedArtifact
from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants
from .versions import is_newer

logger = logging.getLogger(__name__)


@dataclass
class ModuleDescriptor:
    """What a repository knows about one module version.

    Attributes:
        coordinate: Module version (no extension).
        packaging: Extension of the module's main artifact.
        dependencies: Transitive dependencies, without extensions.
        artifacts: Extensions published for the module; None means any.
        repository: Name of the repository the module was found in.
    """

    coordinate: Coordinate
    packaging: str = "jar"
    dependencies: List[Coordinate] = field(default_factory=list)
    artifacts: Optional[FrozenSet[str]] = None
    repository: Optional[str] = None

    def publishes(self, extension: str) -> bool:
        return self.artifacts is None or extension in self.artifacts


class GraphResolver(ArtifactResolver):
    """Breadth-first resolver with highest-version conflict resolution.

    Artifact-only requests (``g:a:v@ext``) contribute that single file and
    are not walked.
    """

    @abstractmethod
    def describe(self, coordinate: Coordinate, repositories: Sequence[Repository]) -> ModuleDescriptor:
        """Describe a module version.

        Raises:
            ResolutionError: If no repository has the module.
        """

    @abstractmethod
    def locate(self, descriptor: ModuleDescriptor, coordinate: Coordinate, extension: str,
               repositories: Sequence[Repository]) -> str:
        """Return the file (path or URL) for one artifact of a described module."""

    def resolve(
        self,
        dependencies: Sequence[Coordinate],
        exclusions: Sequence[Exclusion],
        repositories: Sequence[Repository],
    ) -> List[ResolvedArtifact]:
        roots = [dep for dep in dependencies if not self._excluded(dep, exclusions)]
        descriptors: Dict[Tuple[str, str, str], ModuleDescriptor] = {}
        selected = self._select_versions(roots, exclusions, repositories, descriptors)

        artifacts: Dict[Tuple[str, str, Optional[str], str], ResolvedArtifact] = {}
        for coordinate in self._walk(roots, exclusions, repositories, selected, descriptors):
            descriptor = self._descriptor(coordinate, repositories, descriptors)
            if coordinate.extension is None and descriptor.packaging == Constants.POM_EXTENSION:
                # Aggregator modules only contribute their dependencies
                continue
            extension = coordinate.extension or descriptor.packaging
            if not descriptor.publishes(extension):
                raise ResolutionError(str(coordinate), [repo.name for repo in repositories])
            key = (coordinate.group, coordinate.artifact, coordinate.classifier, extension)
            if key in artifacts:
                continue
            file = self.locate(descriptor, coordinate, extension, repositories)
            artifacts[key] = ResolvedArtifact(coordinate, extension, file)
        if is_debug_enabled(logger):
            logger.debug(
                "Dependency graph resolved",
                extra=extra_context(
                    event="resolve_graph", component="graph", count=len(artifacts),
                    outcome="success",
                ),
            )
        return list(artifacts.values())

    @staticmethod
    def _excluded(coordinate: Coordinate, exclusions: Sequence[Exclusion]) -> bool:
        return any(exclusion.excludes(coordinate) for exclusion in exclusions)

    def _descriptor(
        self,
        coordinate: Coordinate,
        repositories: Sequence[Repository],
        descriptors: Dict[Tuple[str, str, str], ModuleDescriptor],
    ) -> ModuleDescriptor:
        key = (coordinate.group, coordinate.artifact, coordinate.version)
        if key not in descriptors:
            module = Coordinate(coordinate.group, coordinate.artifact, coordinate.version)
            descriptors[key] = self.describe(module, repositories)
        return descriptors[key]

    def _select_versions(self, roots, exclusions, repositories, descriptors) -> Dict[Tuple[str, str], str]:
        """Pick one version per module; repeat the walk until the choice is stable."""
        selected: Dict[Tuple[str, str], str] = {}
        while True:
            changed = False
            for coordinate in self._walk(roots, exclusions, repositories, selected, descriptors,
                                         requested_versions=True):
                current = selected.get(coordinate.module)
                if current is None or is_newer(coordinate.version, current):
                    selected[coordinate.module] = coordinate.version
                    changed = True
            if not changed:
                return selected

    def _walk(self, roots, exclusions, repositories, selected, descriptors, requested_versions=False):
        """Yield every reachable coordinate once, breadth-first.

        With ``requested_versions`` the versions as declared are yielded (and
        still walked through the currently selected version).
        """
        queue: Deque[Coordinate] = deque(roots)
        seen: Set[Tuple[str, str, str, Optional[str], Optional[str]]] = set()
        expanded: Set[Tuple[str, str]] = set()
        while queue:
            declared = queue.popleft()
            if self._excluded(declared, exclusions):
                continue
            version = selected.get(declared.module, declared.version)
            if not requested_versions and is_newer(declared.version, version):
                version = declared.version
            coordinate = declared if requested_versions else declared.with_version(version)
            marker = (coordinate.group, coordinate.artifact, coordinate.version,
                      coordinate.classifier, coordinate.extension)
            if marker in seen:
                continue
            seen.add(marker)
            yield coordinate
            if declared.artifact_only or declared.module in expanded:
                continue
            expanded.add(declared.module)
            descriptor = self._descriptor(declared.with_version(version), repositories, descriptors)
            queue.extend(descriptor.dependencies)
