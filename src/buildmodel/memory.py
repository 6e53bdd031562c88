"""In-memory implementation of the build capability interface.

Configurations follow the host tool's lifecycle: they are declared and
populated while the build is configured, lazily completed by their
``with_dependencies`` actions, then frozen once they take part in a
resolution. Resolution results are cached per configuration.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, Dict, List, Optional

from common.logging_utils import Timer, extra_context, is_debug_enabled
from .api import ArtifactResolver, Build, DependencyNotation, ResolutionPrepass
from .errors import (
    ConfigurationError,
    ConfigurationStateError,
    CyclicConfigurationError,
    ResolutionError,
    UnknownConfigurationError,
)
from .models import Coordinate, Exclusion, Repository, ResolvedArtifact, SourceSet
from .tasks import Task, TaskContainer

logger = logging.getLogger(__name__)


class Configuration:  # pylint: disable=too-many-instance-attributes
    """A named, mutable set of dependencies with extends relations."""

    def __init__(
        self,
        name: str,
        can_be_resolved: bool = True,
        can_be_consumed: bool = True,
        visible: bool = True,
        description: Optional[str] = None,
    ):
        self.name = name
        self.can_be_resolved = can_be_resolved
        self.can_be_consumed = can_be_consumed
        self.visible = visible
        self.description = description
        self.extends: List["Configuration"] = []
        self.exclusions: List[Exclusion] = []
        self._dependencies: Dict[Coordinate, None] = {}
        self._dependency_actions: List[Callable[[str], None]] = []
        self._actions_run = False
        self.before_resolve: List[Callable[[str], None]] = []
        self.after_resolve: List[Callable[[str, List[ResolvedArtifact]], None]] = []
        # Set once the configuration took part in any resolution
        self.observed = False
        self.resolved_artifacts: Optional[List[ResolvedArtifact]] = None

    @property
    def resolved(self) -> bool:
        return self.resolved_artifacts is not None

    @property
    def dependencies(self) -> List[Coordinate]:
        return list(self._dependencies)

    def _check_mutable(self, change: str) -> None:
        if self.observed:
            raise ConfigurationStateError(self.name, change)

    def add(self, coordinate: Coordinate) -> None:
        self._check_mutable("dependencies")
        self._dependencies.setdefault(coordinate, None)

    def hierarchy(self) -> List["Configuration"]:
        """Self first, then parents depth-first, each configuration once."""
        seen: Dict[str, Configuration] = {}
        stack = [self]
        while stack:
            current = stack.pop()
            if current.name in seen:
                continue
            seen[current.name] = current
            stack.extend(reversed(current.extends))
        return list(seen.values())

    def run_dependency_actions(self) -> None:
        """Run the lazy population actions; only the first call has an effect."""
        if self._actions_run:
            return
        self._actions_run = True
        for action in self._dependency_actions:
            action(self.name)

    def __repr__(self) -> str:
        return f"Configuration({self.name!r})"


class InMemoryBuild(Build):  # pylint: disable=too-many-public-methods
    """A self-contained build model.

    Args:
        project_dir: Project root; relative source directories resolve against it.
        resolver: Back-end used to resolve configurations.
        build_dir: Output directory, ``<project_dir>/build`` by default.
        project_name: Used for archive names.
        version: Used for archive names.
    """

    def __init__(
        self,
        project_dir: str = ".",
        resolver: Optional[ArtifactResolver] = None,
        build_dir: Optional[str] = None,
        project_name: Optional[str] = None,
        version: str = "unspecified",
    ):
        self._project_dir = os.path.abspath(project_dir)
        self._build_dir = os.path.abspath(build_dir or os.path.join(self._project_dir, "build"))
        self.project_name = project_name or os.path.basename(self._project_dir)
        self.version = version
        self.resolver = resolver
        self.source_compatibility: Optional[str] = None
        self.target_compatibility: Optional[str] = None
        self._repositories: List[Repository] = []
        self._configurations: Dict[str, Configuration] = {}
        self._prepasses: List[ResolutionPrepass] = []
        self._source_sets: Dict[str, SourceSet] = {}
        self._tasks = TaskContainer(
            type_actions={
                "GroovyCompile": self._compile_action,
                "Test": self._test_action,
                "Jar": self._jar_action,
            }
        )

    @property
    def project_dir(self) -> str:
        return self._project_dir

    @property
    def build_dir(self) -> str:
        return self._build_dir

    @property
    def tasks(self) -> TaskContainer:
        return self._tasks

    # ---------- repositories ----------

    def add_repository(self, name: str, url: str) -> Repository:
        if any(repo.name == name for repo in self._repositories):
            raise ConfigurationError(f"Repository '{name}' already exists")
        repository = Repository(name, url)
        self._repositories.append(repository)
        return repository

    @property
    def repositories(self) -> List[Repository]:
        return list(self._repositories)

    # ---------- configurations ----------

    def configuration(self, name: str) -> Configuration:
        try:
            return self._configurations[name]
        except KeyError:
            raise UnknownConfigurationError("Configuration", name) from None

    def create_configuration(
        self,
        name: str,
        *,
        can_be_resolved: bool = True,
        can_be_consumed: bool = True,
        visible: bool = True,
        description: Optional[str] = None,
    ) -> None:
        if name in self._configurations:
            raise ConfigurationError(f"Configuration '{name}' already exists")
        self._configurations[name] = Configuration(
            name, can_be_resolved, can_be_consumed, visible, description
        )

    def configuration_names(self) -> List[str]:
        return list(self._configurations)

    def extends_from(self, name: str, *parents: str) -> None:
        child = self.configuration(name)
        for parent_name in parents:
            parent = self.configuration(parent_name)
            if parent in child.extends:
                continue
            path = self._path_between(parent, child)
            if path is not None:
                raise CyclicConfigurationError([child.name] + path)
            child._check_mutable("hierarchy")  # pylint: disable=protected-access
            child.extends.append(parent)

    @staticmethod
    def _path_between(start: Configuration, goal: Configuration) -> Optional[List[str]]:
        """Names along an extends path from ``start`` to ``goal``, if one exists."""
        if start is goal:
            return [start.name]
        for parent in start.extends:
            rest = InMemoryBuild._path_between(parent, goal)
            if rest is not None:
                return [start.name] + rest
        return None

    def hierarchy(self, name: str) -> List[str]:
        return [config.name for config in self.configuration(name).hierarchy()]

    def add_dependency(self, name: str, notation: DependencyNotation) -> Coordinate:
        coordinate = notation if isinstance(notation, Coordinate) else Coordinate.parse(notation)
        self.configuration(name).add(coordinate)
        return coordinate

    def dependencies(self, name: str) -> List[Coordinate]:
        return self.configuration(name).dependencies

    def with_dependencies(self, name: str, action: Callable[[str], None]) -> None:
        config = self.configuration(name)
        config._check_mutable("dependency actions")  # pylint: disable=protected-access
        config._dependency_actions.append(action)  # pylint: disable=protected-access

    def exclude(self, name: str, group: str, module: Optional[str] = None) -> None:
        config = self.configuration(name)
        config._check_mutable("exclusions")  # pylint: disable=protected-access
        exclusion = Exclusion(group, module)
        if exclusion not in config.exclusions:
            config.exclusions.append(exclusion)

    def before_resolve(self, name: str, listener: Callable[[str], None]) -> None:
        self.configuration(name).before_resolve.append(listener)

    def after_resolve(
        self, name: str, listener: Callable[[str, List[ResolvedArtifact]], None]
    ) -> None:
        self.configuration(name).after_resolve.append(listener)

    def add_resolution_prepass(self, prepass: ResolutionPrepass) -> None:
        self._prepasses.append(prepass)

    def is_resolved(self, name: str) -> bool:
        return self.configuration(name).resolved

    def resolve(self, name: str) -> List[ResolvedArtifact]:
        """Resolve a configuration and everything it extends.

        Raises:
            ConfigurationError: If the configuration is not resolvable.
            ResolutionError: If a dependency cannot be found.
        """
        config = self.configuration(name)
        if not config.can_be_resolved:
            raise ConfigurationError(f"Resolving configuration '{name}' directly is not allowed")
        if config.resolved:
            return list(config.resolved_artifacts or [])

        for prepass in self._prepasses:
            prepass(name)
        for listener in config.before_resolve:
            listener(name)

        hierarchy = config.hierarchy()
        for member in hierarchy:
            member.run_dependency_actions()

        requested: Dict[Coordinate, None] = {}
        exclusions: List[Exclusion] = []
        for member in hierarchy:
            for coordinate in member.dependencies:
                requested.setdefault(coordinate, None)
            exclusions.extend(e for e in member.exclusions if e not in exclusions)
        for member in hierarchy:
            member.observed = True

        with Timer() as timer:
            try:
                artifacts = self._resolve_coordinates(list(requested), exclusions)
            except ResolutionError as err:
                if not err.configuration:
                    err.configuration = name
                raise
        config.resolved_artifacts = artifacts
        logger.info("Resolved configuration %s (%d artifacts)", name, len(artifacts))
        if is_debug_enabled(logger):
            logger.debug(
                "Configuration resolved",
                extra=extra_context(
                    event="resolve",
                    component="build",
                    configuration=name,
                    count=len(artifacts),
                    duration_ms=timer.duration_ms(),
                ),
            )
        for listener in config.after_resolve:
            listener(name, list(artifacts))
        return list(artifacts)

    def _resolve_coordinates(
        self, requested: List[Coordinate], exclusions: List[Exclusion]
    ) -> List[ResolvedArtifact]:
        if not requested:
            return []
        if self.resolver is None:
            raise ResolutionError(str(requested[0]), [repo.name for repo in self._repositories])
        return self.resolver.resolve(requested, exclusions, self._repositories)

    # ---------- source sets ----------

    def apply_groovy_conventions(self) -> None:
        """Create ``main`` and ``test`` plus the standard lifecycle tasks."""
        if "main" in self._source_sets:
            return
        main = self.create_source_set("main")
        main.java.set_src_dirs(["src/main/java"])
        main.groovy.set_src_dirs(["src/main/groovy"])
        main.resources.set_src_dirs(["src/main/resources"])
        test = self.create_source_set("test")
        test.java.set_src_dirs(["src/test/java"])
        test.groovy.set_src_dirs(["src/test/groovy"])
        test.resources.set_src_dirs(["src/test/resources"])
        self.extends_from(test.implementation_configuration_name, main.implementation_configuration_name)
        self.extends_from(test.runtime_only_configuration_name, main.runtime_only_configuration_name)

        self._tasks.create(
            "jar", "Jar", group="build", description="Assembles a jar archive containing the main classes.",
            depends_on=[main.classes_task_name],
        )
        self._tasks.create(
            "groovydoc", "Groovydoc", group="documentation",
            description="Generates Groovydoc API documentation for the main source code.",
            depends_on=[main.classes_task_name], source_dirs=list(main.groovy.src_dirs),
        )
        self._tasks.create(
            "test", "Test", group="verification", description="Runs the unit tests.",
            depends_on=[test.classes_task_name],
            classpath=[test.runtime_classpath_configuration_name],
            test_classes_dirs=[self._classes_dir(test, "groovy")],
        )
        self._tasks.create(
            "check", group="verification", description="Runs all checks.", depends_on=["test"],
        )
        self._tasks.create("assemble", group="build", description="Assembles the outputs of this project.",
                           depends_on=["jar"])
        self._tasks.create("build", group="build", description="Assembles and tests this project.",
                           depends_on=["assemble", "check"])

    def source_set(self, name: str) -> SourceSet:
        try:
            return self._source_sets[name]
        except KeyError:
            raise UnknownConfigurationError("SourceSet", name) from None

    def source_sets(self) -> List[SourceSet]:
        return list(self._source_sets.values())

    def create_source_set(self, name: str) -> SourceSet:
        if name in self._source_sets:
            raise ConfigurationError(f"SourceSet '{name}' already exists")
        source_set = SourceSet(name)
        self._source_sets[name] = source_set

        for declared in (
            source_set.implementation_configuration_name,
            source_set.compile_only_configuration_name,
            source_set.runtime_only_configuration_name,
        ):
            self.create_configuration(declared, can_be_resolved=False, can_be_consumed=False)
        self.create_configuration(source_set.compile_classpath_configuration_name, can_be_consumed=False)
        self.create_configuration(source_set.runtime_classpath_configuration_name, can_be_consumed=False)
        self.extends_from(
            source_set.compile_classpath_configuration_name,
            source_set.compile_only_configuration_name,
            source_set.implementation_configuration_name,
        )
        self.extends_from(
            source_set.runtime_classpath_configuration_name,
            source_set.runtime_only_configuration_name,
            source_set.implementation_configuration_name,
        )

        compile_tasks = []
        for language in ("java", "groovy"):
            task = self._tasks.create(
                source_set.compile_task_name(language),
                "GroovyCompile" if language == "groovy" else "JavaCompile",
                description=f"Compiles the {name} {language.capitalize()} source.",
                classpath=[source_set.compile_classpath_configuration_name],
            )
            compile_tasks.append(task.name)
        self._tasks.create(
            source_set.classes_task_name, group="build",
            description=f"Assembles {name} classes.", depends_on=compile_tasks,
        )
        return source_set

    def set_java_compatibility(self, source: str, target: str) -> None:
        self.source_compatibility = source
        self.target_compatibility = target

    def _classes_dir(self, source_set: SourceSet, language: str) -> str:
        return os.path.join(self._build_dir, "classes", language, source_set.name)

    def classes_dirs(self, name: str) -> List[str]:
        """Compiled class directories of a source set."""
        source_set = self.source_set(name)
        return [self._classes_dir(source_set, language) for language in ("java", "groovy")]

    # ---------- task actions ----------

    def _resolve_task_classpath(self, names: List[str]) -> List[str]:
        files: List[str] = []
        for name in names:
            for artifact in self.resolve(name):
                if artifact.file not in files:
                    files.append(artifact.file)
        return files

    def _compile_action(self, task: Task) -> None:
        task.results["classpath"] = self._resolve_task_classpath(task.classpath)
        task.results["groovy_classpath"] = self._resolve_task_classpath(task.groovy_classpath)

    def _test_action(self, task: Task) -> None:
        task.results["classpath"] = self._resolve_task_classpath(task.classpath)
        task.results["system_properties"] = dict(task.system_properties)

    def _jar_action(self, task: Task) -> None:
        file_name = f"{self.project_name}-{self.version}"
        if task.classifier:
            file_name += f"-{task.classifier}"
        task.results["archive"] = os.path.join(self._build_dir, "libs", file_name + ".jar")
