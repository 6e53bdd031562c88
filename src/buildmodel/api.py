"""Build capability interface.

The shared library convention talks to the host build tool only through
``Build``. Anything implementing it (the in-memory model shipped here, or
an adapter around a real tool) can have the convention applied.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence, Union

from .models import Coordinate, Exclusion, Repository, ResolvedArtifact, SourceSet
from .tasks import TaskContainer

DependencyNotation = Union[str, Coordinate]
# Receives the name of the configuration about to be resolved.
ResolutionPrepass = Callable[[str], None]


class ArtifactResolver(ABC):
    """Turns a set of requested coordinates into concrete files."""

    @abstractmethod
    def resolve(
        self,
        dependencies: Sequence[Coordinate],
        exclusions: Sequence[Exclusion],
        repositories: Sequence[Repository],
    ) -> List[ResolvedArtifact]:
        """Resolve ``dependencies`` and their transitive closure.

        Raises:
            ResolutionError: If a coordinate is not found in any repository.
        """


class Build(ABC):
    """Capabilities the convention needs from the host build tool."""

    @property
    @abstractmethod
    def project_dir(self) -> str:
        """Absolute project directory."""

    @property
    @abstractmethod
    def build_dir(self) -> str:
        """Absolute build output directory."""

    @property
    @abstractmethod
    def tasks(self) -> TaskContainer:
        """Container of the build's tasks."""

    # ---------- repositories ----------

    @abstractmethod
    def add_repository(self, name: str, url: str) -> Repository:
        """Append a named Maven repository to the repository list."""

    @property
    @abstractmethod
    def repositories(self) -> List[Repository]:
        """Repositories in search order."""

    # ---------- configurations ----------

    @abstractmethod
    def create_configuration(
        self,
        name: str,
        *,
        can_be_resolved: bool = True,
        can_be_consumed: bool = True,
        visible: bool = True,
        description: Optional[str] = None,
    ) -> None:
        """Declare a configuration. Names are unique."""

    @abstractmethod
    def configuration_names(self) -> List[str]:
        """Declared configuration names in declaration order."""

    @abstractmethod
    def extends_from(self, name: str, *parents: str) -> None:
        """Make ``name`` inherit the dependencies of ``parents``."""

    @abstractmethod
    def hierarchy(self, name: str) -> List[str]:
        """``name`` followed by every configuration it transitively extends."""

    @abstractmethod
    def add_dependency(self, name: str, notation: DependencyNotation) -> Coordinate:
        """Add a dependency to a configuration and return its coordinate."""

    @abstractmethod
    def dependencies(self, name: str) -> List[Coordinate]:
        """Dependencies declared directly on ``name``."""

    @abstractmethod
    def with_dependencies(self, name: str, action: Callable[[str], None]) -> None:
        """Register an action that populates ``name`` lazily, before it is first resolved."""

    @abstractmethod
    def exclude(self, name: str, group: str, module: Optional[str] = None) -> None:
        """Exclude a group or module from everything resolved through ``name``."""

    @abstractmethod
    def before_resolve(self, name: str, listener: Callable[[str], None]) -> None:
        """Run ``listener`` once, just before ``name`` is first resolved."""

    @abstractmethod
    def after_resolve(self, name: str, listener: Callable[[str, List[ResolvedArtifact]], None]) -> None:
        """Run ``listener`` once, right after ``name`` is first resolved."""

    @abstractmethod
    def add_resolution_prepass(self, prepass: ResolutionPrepass) -> None:
        """Run ``prepass`` before the resolution of every configuration."""

    @abstractmethod
    def is_resolved(self, name: str) -> bool:
        """True once ``name`` has been resolved."""

    @abstractmethod
    def resolve(self, name: str) -> List[ResolvedArtifact]:
        """Resolve ``name``; repeated calls return the cached result."""

    # ---------- source sets ----------

    @abstractmethod
    def apply_groovy_conventions(self) -> None:
        """Apply the host tool's Groovy conventions (main/test source sets, standard tasks)."""

    @abstractmethod
    def source_set(self, name: str) -> SourceSet:
        """Look up an existing source set."""

    @abstractmethod
    def create_source_set(self, name: str) -> SourceSet:
        """Create a source set with its standard configurations and compile tasks."""

    @abstractmethod
    def classes_dirs(self, name: str) -> List[str]:
        """Compiled class directories of a source set."""

    @abstractmethod
    def set_java_compatibility(self, source: str, target: str) -> None:
        """Set the source and target Java compatibility levels."""
