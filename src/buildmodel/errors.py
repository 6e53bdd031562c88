"""Exceptions raised by the build model and the resolvers."""

from __future__ import annotations

from typing import Sequence


class BuildError(Exception):
    """Base class for every error raised while configuring or running a build."""


class ConfigurationError(BuildError):
    """Invalid user configuration (duplicate names, bad notation, bad overrides)."""


class UnknownConfigurationError(BuildError):
    """A configuration, source set or task was looked up by a name never declared."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} '{name}' not found")


class CyclicConfigurationError(BuildError):
    """A configuration would extend itself, directly or transitively."""

    def __init__(self, path: Sequence[str]):
        self.path = list(path)
        super().__init__("Cyclic configuration hierarchy: " + " -> ".join(self.path))


class ConfigurationStateError(BuildError):
    """A configuration was mutated after it had been resolved."""

    def __init__(self, name: str, change: str):
        self.name = name
        self.change = change
        super().__init__(
            f"Cannot change {change} of configuration '{name}' after it has been resolved"
        )


class ResolutionError(BuildError):
    """A declared coordinate could not be located in any configured repository.

    Attributes:
        coordinate: Notation of the coordinate that failed.
        repositories: Names (or URLs) of the repositories that were searched.
        configuration: Configuration being resolved when the failure happened.
    """

    def __init__(self, coordinate: str, repositories: Sequence[str], configuration: str = ""):
        self.coordinate = coordinate
        self.repositories = list(repositories)
        self.configuration = configuration
        super().__init__(coordinate)

    def __str__(self) -> str:
        searched = ", ".join(self.repositories) if self.repositories else "<none>"
        where = f" for configuration '{self.configuration}'" if self.configuration else ""
        return f"Could not resolve {self.coordinate}{where}. Searched in: {searched}"


class TaskError(BuildError):
    """A task graph is invalid (cycles, unknown dependencies) or a task action failed."""
