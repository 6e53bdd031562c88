"""Dependency resolution: resolver back-ends and the plugin cascade."""

from .cascade import (
    Derivation,
    ResolutionCascade,
    archives_as_declared,
    archives_as_libraries,
    module_libraries,
    transitive_libraries,
)
from .catalog import CatalogResolver
from .graph import GraphResolver, ModuleDescriptor
from .maven import MavenRepositoryResolver

__all__ = [
    "Derivation",
    "ResolutionCascade",
    "archives_as_declared",
    "archives_as_libraries",
    "module_libraries",
    "transitive_libraries",
    "CatalogResolver",
    "GraphResolver",
    "ModuleDescriptor",
    "MavenRepositoryResolver",
]
