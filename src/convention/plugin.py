"""Applies the Jenkins shared library convention to a build."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from buildmodel.api import Build
from buildmodel.models import SourceSet
from constants import Constants
from resolution.cascade import ResolutionCascade
from . import configurations, layout, tasks
from .extension import SharedLibraryExtension

logger = logging.getLogger(__name__)


@dataclass
class AppliedConvention:
    """What ``SharedLibraryPlugin.apply`` set up, for callers that need handles on it."""

    extension: SharedLibraryExtension
    main: SourceSet
    test: SourceSet
    integration_test: SourceSet
    jenkins_plugins: str
    cascade: ResolutionCascade


class SharedLibraryPlugin:  # pylint: disable=too-few-public-methods
    """Entry point of the convention; ``apply`` is called once per build."""

    def apply(self, build: Build, extension: Optional[SharedLibraryExtension] = None) -> AppliedConvention:
        extension = extension or SharedLibraryExtension()
        build.apply_groovy_conventions()
        self.setup_jenkins_repository(build)
        main, test, integration_test = layout.setup_source_sets(build)

        jenkins_plugins = configurations.setup_jenkins_plugins(build, extension)
        groovy = configurations.setup_groovy(build, extension)
        configurations.setup_main(build, main, groovy)
        configurations.setup_unit_test(build, test, groovy, extension)
        tasks.setup_integration_test_task(build, main, integration_test)
        tasks.setup_documentation_tasks(build, main)
        configurations.setup_integration_test(build, test, integration_test, groovy)
        cascade = configurations.setup_cascade(build, jenkins_plugins)
        ivy = configurations.setup_ivy(build)
        tasks.setup_ivy_grab_support(build, ivy)
        configurations.add_dependencies_from_extension(build, extension)

        logger.info("Applied Jenkins shared library conventions to %s", build.project_dir)
        return AppliedConvention(extension, main, test, integration_test, jenkins_plugins, cascade)

    @staticmethod
    def setup_jenkins_repository(build: Build) -> None:
        logger.debug(
            "Adding repository named %s with URL %s",
            Constants.JENKINS_REPOSITORY_NAME, Constants.JENKINS_REPOSITORY_URL,
        )
        build.add_repository(Constants.JENKINS_REPOSITORY_NAME, Constants.JENKINS_REPOSITORY_URL)
