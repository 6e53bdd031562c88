"""Data models for coordinates, artifacts, repositories and source sets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .errors import ConfigurationError


@dataclass(frozen=True)
class Coordinate:
    """A Maven-style coordinate ``group:artifact:version[:classifier][@extension]``.

    ``extension`` set means the notation is artifact-only: exactly that file
    is resolved and the module's own dependencies are not followed.
    """

    group: str
    artifact: str
    version: str
    extension: Optional[str] = None
    classifier: Optional[str] = None

    @classmethod
    def parse(cls, notation: str) -> "Coordinate":
        """Parse a string notation into a coordinate.

        Raises:
            ConfigurationError: If group, artifact or version is missing.
        """
        text = notation.strip()
        extension = None
        if "@" in text:
            text, extension = text.rsplit("@", 1)
            extension = extension.strip() or None
        parts = [part.strip() for part in text.split(":")]
        if len(parts) not in (3, 4) or not all(parts[:3]):
            raise ConfigurationError(
                f"Invalid dependency notation '{notation}', expected group:artifact:version"
            )
        classifier = (parts[3] or None) if len(parts) == 4 else None
        return cls(parts[0], parts[1], parts[2], extension, classifier)

    @property
    def module(self) -> Tuple[str, str]:
        """The ``(group, artifact)`` pair identifying the module across versions."""
        return self.group, self.artifact

    @property
    def module_version(self) -> str:
        """Notation without classifier or extension."""
        return f"{self.group}:{self.artifact}:{self.version}"

    @property
    def artifact_only(self) -> bool:
        """True when an explicit extension was requested."""
        return self.extension is not None

    def with_extension(self, extension: Optional[str]) -> "Coordinate":
        """Same module version and classifier, requested as ``@extension`` (None for the module itself)."""
        return Coordinate(self.group, self.artifact, self.version, extension, self.classifier)

    def with_version(self, version: str) -> "Coordinate":
        return Coordinate(self.group, self.artifact, version, self.extension, self.classifier)

    def matches(self, group: str, module: Optional[str] = None) -> bool:
        """True when this coordinate belongs to ``group`` (and ``module`` if given)."""
        return self.group == group and (module is None or self.artifact == module)

    def __str__(self) -> str:
        text = self.module_version
        if self.classifier:
            text += f":{self.classifier}"
        if self.extension:
            text += f"@{self.extension}"
        return text


@dataclass(frozen=True)
class Exclusion:
    """Excludes a group, or one module of a group, from transitive resolution."""

    group: str
    module: Optional[str] = None

    def excludes(self, coordinate: Coordinate) -> bool:
        return coordinate.matches(self.group, self.module)


@dataclass(frozen=True)
class PluginDeclaration:
    """A named reference to a Jenkins plugin coordinate."""

    name: str
    coordinate: Coordinate


@dataclass(frozen=True)
class ResolvedArtifact:
    """One concrete file produced by resolving a configuration."""

    coordinate: Coordinate
    extension: str
    file: str

    @property
    def module_version(self) -> str:
        return self.coordinate.module_version

    def to_dict(self) -> dict:
        return {
            "group": self.coordinate.group,
            "artifact": self.coordinate.artifact,
            "version": self.coordinate.version,
            "classifier": self.coordinate.classifier,
            "extension": self.extension,
            "file": self.file,
        }


@dataclass(frozen=True)
class Repository:
    """A named remote Maven repository."""

    name: str
    url: str

    def artifact_url(self, coordinate: Coordinate, extension: str) -> str:
        """URL of a file for ``coordinate`` in the standard Maven layout."""
        base = self.url if self.url.endswith("/") else self.url + "/"
        file_name = f"{coordinate.artifact}-{coordinate.version}"
        if coordinate.classifier:
            file_name += f"-{coordinate.classifier}"
        return (
            f"{base}{coordinate.group.replace('.', '/')}/{coordinate.artifact}/"
            f"{coordinate.version}/{file_name}.{extension}"
        )


@dataclass
class SourceDirectorySet:
    """Ordered list of source directories for one language or resources."""

    src_dirs: List[str] = field(default_factory=list)

    def set_src_dirs(self, dirs: List[str]) -> None:
        self.src_dirs = [str(d) for d in dirs]


@dataclass
class SourceSet:
    """A logical group of sources with its own configurations and tasks.

    Configuration and task names follow the host tool's naming scheme: the
    ``main`` source set uses bare names (``implementation``) while others
    are prefixed (``testImplementation``).
    """

    name: str
    java: SourceDirectorySet = field(default_factory=SourceDirectorySet)
    groovy: SourceDirectorySet = field(default_factory=SourceDirectorySet)
    resources: SourceDirectorySet = field(default_factory=SourceDirectorySet)

    def _prefixed(self, suffix: str) -> str:
        if self.name == "main":
            return suffix[0].lower() + suffix[1:]
        return self.name + suffix

    @property
    def implementation_configuration_name(self) -> str:
        return self._prefixed("Implementation")

    @property
    def compile_only_configuration_name(self) -> str:
        return self._prefixed("CompileOnly")

    @property
    def runtime_only_configuration_name(self) -> str:
        return self._prefixed("RuntimeOnly")

    @property
    def compile_classpath_configuration_name(self) -> str:
        return self._prefixed("CompileClasspath")

    @property
    def runtime_classpath_configuration_name(self) -> str:
        return self._prefixed("RuntimeClasspath")

    @property
    def classes_task_name(self) -> str:
        return self._prefixed("Classes")

    def compile_task_name(self, language: str) -> str:
        """``compileGroovy`` for main, ``compileTestGroovy`` for test, and so on."""
        language = language[0].upper() + language[1:]
        if self.name == "main":
            return f"compile{language}"
        return f"compile{self.name[0].upper()}{self.name[1:]}{language}"

    @property
    def all_source(self) -> List[str]:
        """Every source and resource directory, in declaration order, without duplicates."""
        seen: List[str] = []
        for directory in self.java.src_dirs + self.groovy.src_dirs + self.resources.src_dirs:
            if directory not in seen:
                seen.append(directory)
        return seen
