"""Plugin resolution cascade.

Jenkins plugins are published as ``hpi``/``jpi`` archives, which cannot go
on a compile classpath, plus a ``jar`` holding the same classes. The user
declares each plugin once in a *seed* configuration; resolving the seed
yields the archives and their transitive libraries, and *derivations* turn
that result into dependencies of other configurations.

Two phases keep the ordering inspectable:

* declaration: ``derive(target, rule)`` records a pure rule mapping the
  seed's resolved artifacts to coordinates;
* activation: the first time anything whose hierarchy includes a target is
  resolved, the build's resolution pre-pass resolves the seed, evaluates
  every rule, and only then adds the results. Consumers never see a target
  half populated.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from buildmodel.api import Build
from buildmodel.errors import ConfigurationStateError, CyclicConfigurationError
from buildmodel.models import Coordinate, ResolvedArtifact
from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants

logger = logging.getLogger(__name__)

ArtifactRule = Callable[[Sequence[ResolvedArtifact]], List[Coordinate]]


def _as_module(artifact: ResolvedArtifact, extension: Optional[str]) -> Coordinate:
    return artifact.coordinate.with_extension(extension)


def archives_as_declared(artifacts: Sequence[ResolvedArtifact]) -> List[Coordinate]:
    """Every plugin archive, requested with its own extension."""
    return [
        _as_module(artifact, artifact.extension)
        for artifact in artifacts
        if artifact.extension in Constants.PLUGIN_ARCHIVE_EXTENSIONS
    ]


def archives_as_libraries(artifacts: Sequence[ResolvedArtifact]) -> List[Coordinate]:
    """The published library jar of every plugin archive."""
    return [
        _as_module(artifact, Constants.LIBRARY_EXTENSION)
        for artifact in artifacts
        if artifact.extension in Constants.PLUGIN_ARCHIVE_EXTENSIONS
    ]


def transitive_libraries(artifacts: Sequence[ResolvedArtifact]) -> List[Coordinate]:
    """Plain jar dependencies pulled in by the plugins."""
    return [
        _as_module(artifact, Constants.LIBRARY_EXTENSION)
        for artifact in artifacts
        if artifact.extension == Constants.LIBRARY_EXTENSION
    ]


def module_libraries(group: str, module: str) -> ArtifactRule:
    """Rule selecting one module from the seed, requested as a normal dependency."""

    def rule(artifacts: Sequence[ResolvedArtifact]) -> List[Coordinate]:
        return [
            _as_module(artifact, None)
            for artifact in artifacts
            if artifact.coordinate.matches(group, module)
        ]

    rule.__name__ = f"module_libraries[{group}:{module}]"
    return rule


@dataclass(frozen=True)
class Derivation:
    """A target configuration fed from the seed's resolved artifacts."""

    target: str
    rule: ArtifactRule


class ResolutionCascade:
    """Expands derived configurations from one seed configuration.

    Args:
        build: Build whose configurations are wired.
        seed: Name of the seed configuration.
    """

    def __init__(self, build: Build, seed: str):
        self.build = build
        self.seed = seed
        self.derivations: List[Derivation] = []
        self.activated = False
        self.derived: Dict[str, List[Coordinate]] = {}
        self._registered = False

    @property
    def targets(self) -> List[str]:
        names: List[str] = []
        for derivation in self.derivations:
            if derivation.target not in names:
                names.append(derivation.target)
        return names

    def derive(self, target: str, rule: ArtifactRule) -> Derivation:
        """Declare that ``target`` receives ``rule(seed artifacts)``.

        Raises:
            ConfigurationStateError: If the cascade already ran.
            CyclicConfigurationError: If ``target`` is the seed.
        """
        if self.activated:
            raise ConfigurationStateError(target, "derivations")
        if target == self.seed:
            raise CyclicConfigurationError([self.seed, self.seed])
        derivation = Derivation(target, rule)
        self.derivations.append(derivation)
        return derivation

    def register(self) -> "ResolutionCascade":
        """Hook the cascade into the build: a resolution pre-pass plus the seed's after-resolve."""
        if not self._registered:
            self.build.add_resolution_prepass(self.prepare)
            self.build.after_resolve(self.seed, self._on_seed_resolved)
            self._registered = True
        return self

    def _check_acyclic(self) -> None:
        seed_hierarchy = self.build.hierarchy(self.seed)
        for target in self.targets:
            if target in seed_hierarchy:
                raise CyclicConfigurationError([self.seed, target, self.seed])

    def plan(self, name: str) -> List[str]:
        """Configurations to resolve before ``name``; empty when nothing is pending."""
        if self.activated:
            return []
        hierarchy = self.build.hierarchy(name)
        if not any(target in hierarchy for target in self.targets):
            return []
        self._check_acyclic()
        return [self.seed]

    def prepare(self, name: str) -> None:
        """Pre-pass run before ``name`` is resolved."""
        for seed in self.plan(name):
            logger.debug("Resolving %s before %s", seed, name)
            self.activate()

    def activate(self) -> Dict[str, List[Coordinate]]:
        """Resolve the seed (if needed) and populate every target, at most once."""
        if not self.activated:
            artifacts = self.build.resolve(self.seed)
            # The after-resolve hook already applied it unless the seed was
            # resolved before the cascade was registered
            if not self.activated:
                self._apply(artifacts)
        return self.derived

    def _on_seed_resolved(self, _name: str, artifacts: List[ResolvedArtifact]) -> None:
        self._apply(artifacts)

    def expand(self, artifacts: Sequence[ResolvedArtifact]) -> Dict[str, List[Coordinate]]:
        """Evaluate every derivation against ``artifacts`` without touching the build."""
        known = Constants.PLUGIN_ARCHIVE_EXTENSIONS | {Constants.LIBRARY_EXTENSION}
        for artifact in artifacts:
            if artifact.extension not in known:
                logger.debug(
                    "Artifact %s has extension %s, not part of the plugin cascade",
                    artifact.module_version, artifact.extension,
                )
        result: Dict[str, List[Coordinate]] = {target: [] for target in self.targets}
        for derivation in self.derivations:
            bucket = result[derivation.target]
            for coordinate in derivation.rule(artifacts):
                if coordinate not in bucket:
                    bucket.append(coordinate)
        return result

    def _apply(self, artifacts: Sequence[ResolvedArtifact]) -> None:
        if self.activated:
            return
        self._check_acyclic()
        derived = self.expand(artifacts)
        for target, coordinates in derived.items():
            for coordinate in coordinates:
                self.build.add_dependency(target, coordinate)
        self.derived = derived
        self.activated = True
        logger.info(
            "Derived %s from %d artifacts of %s",
            ", ".join(f"{target} ({len(coords)})" for target, coords in derived.items()) or "nothing",
            len(artifacts), self.seed,
        )
        if is_debug_enabled(logger):
            for target, coordinates in derived.items():
                logger.debug(
                    "Derived dependencies",
                    extra=extra_context(
                        event="cascade", component="cascade", configuration=target,
                        count=len(coordinates),
                    ),
                )
