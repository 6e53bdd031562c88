"""Jenkins shared library build convention.

Registers the Jenkins repository, remaps the ``src``/``vars``/``test``
layout, declares the plugin, core and test-harness configurations, wires
the plugin resolution cascade and adds the integration test and archive
tasks.
"""

from .extension import PluginDependencySpec, SharedLibraryExtension
from .plugin import AppliedConvention, SharedLibraryPlugin

__all__ = [
    "AppliedConvention",
    "PluginDependencySpec",
    "SharedLibraryExtension",
    "SharedLibraryPlugin",
]
