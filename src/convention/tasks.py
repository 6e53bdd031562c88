"""Integration test, documentation and ``@Grab`` task wiring."""

from __future__ import annotations

from buildmodel.api import Build
from buildmodel.models import SourceSet
from buildmodel.tasks import Task
from constants import Constants

INTEGRATION_TEST_TASK = "integrationTest"
SOURCES_JAR_TASK = "sourcesJar"
GROOVYDOC_JAR_TASK = "groovydocJar"


def setup_integration_test_task(build: Build, main: SourceSet, integration_test: SourceSet) -> Task:
    """Create ``integrationTest`` and make ``check`` depend on it."""
    task = build.tasks.create(
        INTEGRATION_TEST_TASK,
        "Test",
        group=Constants.VERIFICATION_GROUP,
        description="Runs tests with the jenkins-test-harness",
        classpath=[integration_test.runtime_classpath_configuration_name],
        test_classes_dirs=build.classes_dirs(integration_test.name),
        # The Jenkins test harness writes its output relative to this property
        system_properties={"buildDirectory": build.build_dir},
    )
    task.depends(main.classes_task_name, integration_test.classes_task_name)
    task.run_after("test")
    build.tasks.get(Constants.CHECK_TASK_NAME).depends(task.name)
    return task


def setup_documentation_tasks(build: Build, main: SourceSet) -> None:
    build.tasks.create(
        SOURCES_JAR_TASK,
        "Jar",
        group=Constants.BUILD_GROUP,
        description="Assemble the sources JAR",
        classifier="sources",
        source_dirs=main.all_source,
    )
    groovydoc_jar = build.tasks.create(
        GROOVYDOC_JAR_TASK,
        "Jar",
        group=Constants.DOCUMENTATION_GROUP,
        description="Assemble the Groovydoc JAR",
        classifier="javadoc",
    )
    groovydoc_jar.depends("groovydoc")


def setup_ivy_grab_support(build: Build, ivy: str) -> None:
    for task in build.tasks.with_type("GroovyCompile"):
        if ivy not in task.groovy_classpath:
            task.groovy_classpath.append(ivy)
    test = build.tasks.get("test")
    if ivy not in test.classpath:
        test.classpath.append(ivy)
