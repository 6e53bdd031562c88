"""The ``sharedLibrary`` extension: overridable versions and plugin declarations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from buildmodel.errors import ConfigurationError
from buildmodel.models import Coordinate, PluginDeclaration
from constants import DefaultVersions

WORKFLOW_GROUP = "org.jenkins-ci.plugins.workflow"

# Extension key -> (artifact id, default version)
WORKFLOW_PLUGINS: Dict[str, tuple] = {
    "workflow_api": ("workflow-api", DefaultVersions.WORKFLOW_API_PLUGIN.value),
    "workflow_basic_steps": ("workflow-basic-steps", DefaultVersions.WORKFLOW_BASIC_STEPS_PLUGIN.value),
    "workflow_cps": ("workflow-cps", DefaultVersions.WORKFLOW_CPS_PLUGIN.value),
    "workflow_durable_task_step": (
        "workflow-durable-task-step", DefaultVersions.WORKFLOW_DURABLE_TASK_STEP_PLUGIN.value
    ),
    "workflow_global_cps_library": (
        "workflow-cps-global-lib", DefaultVersions.WORKFLOW_GLOBAL_CPS_LIBRARY_PLUGIN.value
    ),
    "workflow_job": ("workflow-job", DefaultVersions.WORKFLOW_JOB_PLUGIN.value),
    "workflow_multibranch": ("workflow-multibranch", DefaultVersions.WORKFLOW_MULTIBRANCH_PLUGIN.value),
    "workflow_step_api": ("workflow-step-api", DefaultVersions.WORKFLOW_STEP_API_PLUGIN.value),
    "workflow_scm_step": ("workflow-scm-step", DefaultVersions.WORKFLOW_SCM_STEP_PLUGIN.value),
    "workflow_support": ("workflow-support", DefaultVersions.WORKFLOW_SUPPORT_PLUGIN.value),
}


def _version_text(key: str, value: Any) -> str:
    # YAML reads 2.150 as the float 2.15, so only strings are accepted from files
    if not isinstance(value, str):
        raise ConfigurationError(
            f"Value for '{key}' must be a string, got {value!r}; quote it, e.g. {key}: \"{value}\""
        )
    return value


class PluginDependencySpec:
    """Versions of the workflow plugins plus any extra plugins the user declares."""

    def __init__(self, versions: Optional[Mapping[str, str]] = None):
        self.versions: Dict[str, str] = {key: default for key, (_, default) in WORKFLOW_PLUGINS.items()}
        self._additional: Dict[str, PluginDeclaration] = {}
        for key, value in (versions or {}).items():
            self.set_version(key, value)

    def set_version(self, key: str, version: str) -> None:
        """Override a workflow plugin version.

        Raises:
            ConfigurationError: For an unknown plugin key or an empty version.
        """
        if key not in WORKFLOW_PLUGINS:
            raise ConfigurationError(
                f"Unknown plugin '{key}', expected one of: {', '.join(sorted(WORKFLOW_PLUGINS))}"
            )
        if not str(version).strip():
            raise ConfigurationError(f"Empty version for plugin '{key}'")
        self.versions[key] = str(version).strip()

    def add_plugin(self, name: str, notation: str) -> PluginDeclaration:
        """Declare an additional plugin by name.

        Raises:
            ConfigurationError: If the name is already used.
        """
        if name in WORKFLOW_PLUGINS or name in self._additional:
            raise ConfigurationError(f"Plugin '{name}' is already declared")
        declaration = PluginDeclaration(name, Coordinate.parse(notation))
        self._additional[name] = declaration
        return declaration

    def plugin_dependencies(self) -> List[PluginDeclaration]:
        declarations = [
            PluginDeclaration(key, Coordinate(WORKFLOW_GROUP, artifact, self.versions[key]))
            for key, (artifact, _) in WORKFLOW_PLUGINS.items()
        ]
        declarations.extend(self._additional.values())
        return declarations


@dataclass
class SharedLibraryExtension:
    """User-facing settings of the shared library convention."""

    groovy_version: str = DefaultVersions.GROOVY.value
    core_version: str = DefaultVersions.CORE.value
    pipeline_unit_version: str = DefaultVersions.PIPELINE_UNIT.value
    test_harness_version: str = DefaultVersions.TEST_HARNESS.value
    plugins: PluginDependencySpec = field(default_factory=PluginDependencySpec)

    VERSION_KEYS = ("groovy_version", "core_version", "pipeline_unit_version", "test_harness_version")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SharedLibraryExtension":
        """Build an extension from a configuration section.

        Raises:
            ConfigurationError: On unknown keys, unquoted versions or malformed
                plugin entries.
        """
        extension = cls()
        for key, value in data.items():
            if key == "plugins":
                for plugin_key, version in (value or {}).items():
                    extension.plugins.set_version(plugin_key, _version_text(f"plugins.{plugin_key}", version))
            elif key == "additional_plugins":
                for entry in value or []:
                    if not isinstance(entry, Mapping) or "name" not in entry or "coordinate" not in entry:
                        raise ConfigurationError(f"Plugin entry needs name and coordinate: {entry!r}")
                    extension.plugins.add_plugin(entry["name"], entry["coordinate"])
            else:
                extension.set(key, _version_text(key, value))
        return extension

    def set(self, key: str, value: Any) -> None:
        """Set a version by key; ``plugins.<name>`` addresses a plugin version."""
        if key.startswith("plugins."):
            self.plugins.set_version(key.split(".", 1)[1], value)
            return
        if key not in self.VERSION_KEYS:
            raise ConfigurationError(
                f"Unknown setting '{key}', expected one of: {', '.join(self.VERSION_KEYS)}"
            )
        if not str(value).strip():
            raise ConfigurationError(f"Empty value for '{key}'")
        setattr(self, key, str(value).strip())

    def groovy_dependency(self) -> str:
        return f"org.codehaus.groovy:groovy:{self.groovy_version}"

    def core_dependency(self) -> str:
        return f"org.jenkins-ci.main:jenkins-core:{self.core_version}"

    def jenkins_war(self) -> str:
        return f"org.jenkins-ci.main:jenkins-war:{self.core_version}"

    def pipeline_unit_dependency(self) -> str:
        return f"com.lesfurets:jenkins-pipeline-unit:{self.pipeline_unit_version}"

    def test_harness_dependency(self) -> str:
        return f"org.jenkins-ci.main:jenkins-test-harness:{self.test_harness_version}"

    def plugin_dependencies(self) -> List[PluginDeclaration]:
        return self.plugins.plugin_dependencies()
