"""Dependency configurations of the shared library convention and their wiring."""

from __future__ import annotations

import logging

from buildmodel.api import Build
from buildmodel.models import SourceSet
from constants import ConfigurationNames, Constants
from resolution.cascade import (
    ResolutionCascade,
    archives_as_declared,
    archives_as_libraries,
    module_libraries,
    transitive_libraries,
)
from .extension import SharedLibraryExtension

logger = logging.getLogger(__name__)


def declare_jenkins_configuration(build: Build, name: str, description: str) -> str:
    """Declare a resolvable, non-consumable, invisible configuration."""
    build.create_configuration(
        name, can_be_resolved=True, can_be_consumed=False, visible=False, description=description
    )
    return name


def setup_jenkins_plugins(build: Build, extension: SharedLibraryExtension) -> str:
    """Declare the seed configuration, populated lazily from the extension's plugins."""
    name = declare_jenkins_configuration(
        build, ConfigurationNames.JENKINS_PLUGINS, "Jenkins plugins the shared library uses"
    )

    def add_plugins(configuration: str) -> None:
        declarations = extension.plugin_dependencies()
        logger.debug("Adding %d plugin dependencies to configuration %s", len(declarations), configuration)
        for declaration in declarations:
            build.add_dependency(configuration, declaration.coordinate)

    build.with_dependencies(name, add_plugins)
    return name


def setup_groovy(build: Build, extension: SharedLibraryExtension) -> str:
    name = ConfigurationNames.GROOVY
    build.create_configuration(name, can_be_consumed=False, visible=False,
                               description="Groovy runtime the shared library is compiled against")

    def add_groovy(configuration: str) -> None:
        logger.debug("Adding %s to %s", extension.groovy_dependency(), configuration)
        build.add_dependency(configuration, extension.groovy_dependency())

    build.with_dependencies(name, add_groovy)
    return name


def setup_main(build: Build, main: SourceSet, groovy: str) -> str:
    """Compile-only libraries for ``main``; ``@NonCPS`` needs groovy-cps from the plugins."""
    name = declare_jenkins_configuration(
        build, ConfigurationNames.MAIN_COMPILE_ONLY_LIBRARIES, "Compile-only libraries for the main sources"
    )
    build.extends_from(main.compile_only_configuration_name, name)
    build.extends_from(main.implementation_configuration_name, groovy)
    return name


def setup_unit_test(build: Build, test: SourceSet, groovy: str, extension: SharedLibraryExtension) -> str:
    name = declare_jenkins_configuration(
        build, ConfigurationNames.UNIT_TESTING_LIBRARIES, "JenkinsPipelineUnit libraries for unit tests"
    )

    def add_pipeline_unit(configuration: str) -> None:
        logger.debug("Adding JenkinsPipelineUnit dependency to configuration %s", configuration)
        build.add_dependency(configuration, extension.pipeline_unit_dependency())

    build.with_dependencies(name, add_pipeline_unit)
    build.extends_from(test.implementation_configuration_name, name, groovy)
    return name


def setup_integration_test(
    build: Build, test: SourceSet, integration_test: SourceSet, groovy: str
) -> None:
    """Declare the plugin/core/test-harness configurations and the integration test classpath."""
    hpis = declare_jenkins_configuration(
        build, ConfigurationNames.PLUGIN_HPIS_AND_JPIS, "Plugin archives derived from jenkinsPlugins"
    )
    libraries = declare_jenkins_configuration(
        build, ConfigurationNames.PLUGIN_LIBRARIES, "Plugin jars derived from jenkinsPlugins"
    )
    core = declare_jenkins_configuration(build, ConfigurationNames.CORE_LIBRARIES, "Jenkins core")
    test_libraries = declare_jenkins_configuration(
        build, ConfigurationNames.TEST_LIBRARIES, "Jenkins test harness"
    )
    runtime_only = declare_jenkins_configuration(
        build, ConfigurationNames.TEST_LIBRARIES_RUNTIME_ONLY, "Jenkins WAR for the test harness"
    )

    implementation = integration_test.implementation_configuration_name
    build.extends_from(
        implementation, groovy, test.implementation_configuration_name, core, libraries, test_libraries
    )
    build.exclude(implementation, Constants.PIPELINE_UNIT_GROUP, Constants.PIPELINE_UNIT_MODULE)
    build.extends_from(integration_test.runtime_only_configuration_name, hpis, runtime_only)


def add_dependencies_from_extension(build: Build, extension: SharedLibraryExtension) -> None:
    """Populate core, test harness and WAR configurations on first resolution."""
    build.with_dependencies(
        ConfigurationNames.TEST_LIBRARIES,
        lambda name: build.add_dependency(name, extension.test_harness_dependency()),
    )
    build.with_dependencies(
        ConfigurationNames.TEST_LIBRARIES_RUNTIME_ONLY,
        lambda name: build.add_dependency(name, f"{extension.jenkins_war()}@{Constants.WAR_EXTENSION}"),
    )
    build.with_dependencies(
        ConfigurationNames.CORE_LIBRARIES,
        lambda name: build.add_dependency(name, extension.core_dependency()),
    )


def setup_ivy(build: Build) -> str:
    """Ivy on the Groovy compiler classpath enables ``@Grab`` in trusted libraries."""
    name = ConfigurationNames.IVY
    build.create_configuration(name, can_be_consumed=False, visible=False,
                               description="Ivy for @Grab support")
    build.add_dependency(name, Constants.IVY_COORDINATES)
    return name


def setup_cascade(build: Build, jenkins_plugins: str) -> ResolutionCascade:
    """Derive plugin archives, plugin jars and groovy-cps from the seed configuration."""
    cascade = ResolutionCascade(build, jenkins_plugins)
    cascade.derive(ConfigurationNames.PLUGIN_HPIS_AND_JPIS, archives_as_declared)
    cascade.derive(ConfigurationNames.PLUGIN_LIBRARIES, archives_as_libraries)
    cascade.derive(ConfigurationNames.PLUGIN_LIBRARIES, transitive_libraries)
    cascade.derive(
        ConfigurationNames.MAIN_COMPILE_ONLY_LIBRARIES,
        module_libraries(Constants.GROOVY_CPS_GROUP, Constants.GROOVY_CPS_MODULE),
    )
    return cascade.register()
