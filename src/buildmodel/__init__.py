"""Build model package.

This package defines the capability interface the shared library convention
is written against, and an in-memory build implementing it: configurations
with extends relations and cached resolution, source sets, repositories and
an ordered task graph.
"""

from .api import ArtifactResolver, Build
from .errors import (
    BuildError,
    ConfigurationError,
    ConfigurationStateError,
    CyclicConfigurationError,
    ResolutionError,
    TaskError,
    UnknownConfigurationError,
)
from .memory import InMemoryBuild
from .models import Coordinate, Exclusion, PluginDeclaration, Repository, ResolvedArtifact, SourceSet
from .tasks import Task, TaskContainer

__all__ = [
    "ArtifactResolver",
    "Build",
    "BuildError",
    "ConfigurationError",
    "ConfigurationStateError",
    "CyclicConfigurationError",
    "ResolutionError",
    "TaskError",
    "UnknownConfigurationError",
    "InMemoryBuild",
    "Coordinate",
    "Exclusion",
    "PluginDeclaration",
    "Repository",
    "ResolvedArtifact",
    "SourceSet",
    "Task",
    "TaskContainer",
]
