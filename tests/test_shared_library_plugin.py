"""Tests for applying the Jenkins shared library convention to a build."""

import os

import pytest

from buildmodel.errors import ConfigurationError, ResolutionError
from buildmodel.memory import InMemoryBuild
from convention.extension import SharedLibraryExtension
from convention.plugin import SharedLibraryPlugin
from resolution.catalog import CatalogResolver

PLUGIN_GROUP = "org.jenkins-ci.plugins.workflow"


def jenkins_catalog(extension=None):
    """A catalogue with everything the default conventions reference."""
    extension = extension or SharedLibraryExtension()
    catalog = CatalogResolver(files_root="/repo")
    for declaration in extension.plugin_dependencies():
        dependencies = []
        if declaration.name == "workflow_cps":
            dependencies = ["com.cloudbees:groovy-cps:1.21", f"{PLUGIN_GROUP}:workflow-step-api:2.14"]
        catalog.add(str(declaration.coordinate), packaging="hpi", dependencies=dependencies,
                    repository="JenkinsPublic")
    catalog.add("com.cloudbees:groovy-cps:1.21")
    catalog.add(extension.groovy_dependency())
    catalog.add(extension.pipeline_unit_dependency(), dependencies=[extension.groovy_dependency()])
    catalog.add(extension.core_dependency())
    catalog.add(extension.test_harness_dependency())
    catalog.add(extension.jenkins_war(), packaging="war")
    catalog.add("org.apache.ivy:ivy:2.4.0")
    return catalog


def module_versions(artifacts):
    return sorted(f"{a.coordinate.module_version}@{a.extension}" for a in artifacts)


@pytest.fixture
def project(tmp_path):
    build = InMemoryBuild(project_dir=str(tmp_path), resolver=jenkins_catalog(), project_name="pipeline-lib")
    applied = SharedLibraryPlugin().apply(build)
    return build, applied


class TestRepositoryAndLayout:
    """Test the repository and source directory conventions."""

    def test_jenkins_repository(self, project):
        build, _ = project
        assert [(r.name, r.url) for r in build.repositories] == [
            ("JenkinsPublic", "https://repo.jenkins-ci.org/public/")
        ]

    def test_apply_twice_fails(self, project):
        """Test the repository name is unique so a second application is rejected."""
        build, _ = project
        with pytest.raises(ConfigurationError):
            SharedLibraryPlugin().apply(build)

    def test_main_layout(self, project):
        build, applied = project
        assert applied.main.java.src_dirs == []
        assert applied.main.groovy.src_dirs == ["src", "vars"]
        assert applied.main.resources.src_dirs == ["resources"]
        assert build.source_compatibility == "1.8"
        assert build.target_compatibility == "1.8"

    def test_test_layout(self, project):
        _, applied = project
        assert applied.test.java.src_dirs == ["test/unit/java"]
        assert applied.test.groovy.src_dirs == ["test/unit/groovy"]
        assert applied.test.resources.src_dirs == ["test/unit/resources"]

    def test_integration_test_layout(self, project):
        """Test the integration source set includes the generated sources directory."""
        build, applied = project
        assert applied.integration_test.java.src_dirs == ["test/integration/java"]
        assert applied.integration_test.groovy.src_dirs == [
            "test/integration/groovy",
            os.path.join(build.build_dir, "generated-src", "integrationTest"),
        ]
        assert applied.integration_test.resources.src_dirs == ["test/integration/resources"]


class TestConfigurationGraph:
    """Test the declared configurations and their extends graph."""

    JENKINS_CONFIGURATIONS = [
        "jenkinsPlugins",
        "jenkinsPipelineUnitTestLibraries",
        "jenkinsCoreLibraries",
        "jenkinsTestLibraries",
        "jenkinsTestLibrariesRuntimeOnly",
        "jenkinsPluginHpisAndJpis",
        "jenkinsPluginLibraries",
        "jenkinsLibrariesMainCompileOnly",
    ]

    @pytest.mark.parametrize("name", JENKINS_CONFIGURATIONS)
    def test_jenkins_configuration_flags(self, project, name):
        """Test every Jenkins configuration is resolvable, not consumable and hidden."""
        build, _ = project
        configuration = build.configuration(name)
        assert configuration.can_be_resolved
        assert not configuration.can_be_consumed
        assert not configuration.visible

    def test_main_extends(self, project):
        build, _ = project
        assert build.hierarchy("compileOnly") == ["compileOnly", "jenkinsLibrariesMainCompileOnly"]
        assert build.hierarchy("implementation") == ["implementation", "sharedLibraryGroovy"]

    def test_test_implementation_extends(self, project):
        build, _ = project
        assert set(build.hierarchy("testImplementation")) == {
            "testImplementation", "implementation", "sharedLibraryGroovy", "jenkinsPipelineUnitTestLibraries",
        }

    def test_integration_implementation_extends(self, project):
        build, _ = project
        parents = [c.name for c in build.configuration("integrationTestImplementation").extends]
        assert parents == [
            "sharedLibraryGroovy", "testImplementation", "jenkinsCoreLibraries",
            "jenkinsPluginLibraries", "jenkinsTestLibraries",
        ]

    def test_integration_runtime_only_extends(self, project):
        build, _ = project
        parents = [c.name for c in build.configuration("integrationTestRuntimeOnly").extends]
        assert parents == ["jenkinsPluginHpisAndJpis", "jenkinsTestLibrariesRuntimeOnly"]

    def test_pipeline_unit_excluded_from_integration_tests(self, project):
        build, _ = project
        exclusions = build.configuration("integrationTestImplementation").exclusions
        assert [(e.group, e.module) for e in exclusions] == [("com.lesfurets", "jenkins-pipeline-unit")]

    def test_lazy_dependencies_not_added_at_apply(self, project):
        """Test extension-driven dependencies wait for the first resolution."""
        build, _ = project
        assert build.dependencies("jenkinsPlugins") == []
        assert build.dependencies("jenkinsCoreLibraries") == []
        assert [str(c) for c in build.dependencies("globalLibraryIvy")] == ["org.apache.ivy:ivy:2.4.0"]

    def test_cascade_targets(self, project):
        _, applied = project
        assert applied.cascade.seed == "jenkinsPlugins"
        assert applied.cascade.targets == [
            "jenkinsPluginHpisAndJpis", "jenkinsPluginLibraries", "jenkinsLibrariesMainCompileOnly",
        ]


class TestResolution:
    """Test resolving the convention's classpaths."""

    def test_jenkins_plugins(self, project):
        """Test the seed holds the ten workflow plugins and their libraries."""
        build, _ = project
        artifacts = build.resolve("jenkinsPlugins")
        hpis = [a for a in artifacts if a.extension == "hpi"]
        assert len(hpis) == 10
        assert "com.cloudbees:groovy-cps:1.21@jar" in module_versions(artifacts)

    def test_main_compile_classpath_gets_groovy_cps(self, project):
        build, applied = project
        artifacts = build.resolve("compileClasspath")
        assert module_versions(artifacts) == [
            "com.cloudbees:groovy-cps:1.21@jar",
            "org.codehaus.groovy:groovy:2.4.11@jar",
        ]
        assert applied.cascade.activated

    def test_unit_test_classpath_does_not_resolve_plugins(self, project):
        """Test unit tests get pipeline-unit and never trigger the plugin cascade."""
        build, applied = project
        artifacts = build.resolve("testRuntimeClasspath")
        assert module_versions(artifacts) == [
            "com.lesfurets:jenkins-pipeline-unit:1.1@jar",
            "org.codehaus.groovy:groovy:2.4.11@jar",
        ]
        assert not build.is_resolved("jenkinsPlugins")
        assert not applied.cascade.activated

    def test_integration_runtime_classpath(self, project):
        """Test plugin archives, plugin jars, core, harness and WAR; no pipeline-unit."""
        build, _ = project
        resolved = module_versions(build.resolve("integrationTestRuntimeClasspath"))
        assert f"{PLUGIN_GROUP}:workflow-cps:2.42@hpi" in resolved
        assert f"{PLUGIN_GROUP}:workflow-cps:2.42@jar" in resolved
        assert f"{PLUGIN_GROUP}:workflow-cps-global-lib:2.9@jar" in resolved
        assert "com.cloudbees:groovy-cps:1.21@jar" in resolved
        assert "org.jenkins-ci.main:jenkins-core:2.89.2@jar" in resolved
        assert "org.jenkins-ci.main:jenkins-test-harness:2.33@jar" in resolved
        assert "org.jenkins-ci.main:jenkins-war:2.89.2@war" in resolved
        assert not any("jenkins-pipeline-unit" in entry for entry in resolved)
        assert len([entry for entry in resolved if entry.endswith("@hpi")]) == 10

    def test_overridden_versions(self, tmp_path):
        """Test extension overrides flow into the lazily added dependencies."""
        extension = SharedLibraryExtension(core_version="2.100")
        extension.plugins.set_version("workflow_cps", "2.50")
        build = InMemoryBuild(project_dir=str(tmp_path), resolver=jenkins_catalog(extension))
        SharedLibraryPlugin().apply(build, extension)
        resolved = module_versions(build.resolve("integrationTestRuntimeClasspath"))
        assert "org.jenkins-ci.main:jenkins-core:2.100@jar" in resolved
        assert "org.jenkins-ci.main:jenkins-war:2.100@war" in resolved
        assert f"{PLUGIN_GROUP}:workflow-cps:2.50@hpi" in resolved

    def test_additional_plugin(self, tmp_path):
        extension = SharedLibraryExtension()
        extension.plugins.add_plugin("git", "org.jenkins-ci.plugins:git:3.6.4")
        catalog = jenkins_catalog(extension)
        build = InMemoryBuild(project_dir=str(tmp_path), resolver=catalog)
        SharedLibraryPlugin().apply(build, extension)
        resolved = module_versions(build.resolve("jenkinsPluginHpisAndJpis"))
        assert "org.jenkins-ci.plugins:git:3.6.4@hpi" in resolved
        assert len(resolved) == 11

    def test_missing_plugin_fails_integration_classpath(self, tmp_path):
        """Test a plugin missing from the repository surfaces as a resolution error."""
        extension = SharedLibraryExtension()
        extension.plugins.add_plugin("ghost", "org.example:ghost:1.0")
        build = InMemoryBuild(project_dir=str(tmp_path), resolver=jenkins_catalog())
        SharedLibraryPlugin().apply(build, extension)
        with pytest.raises(ResolutionError) as exc:
            build.resolve("integrationTestCompileClasspath")
        assert exc.value.coordinate == "org.example:ghost:1.0"
        assert exc.value.repositories == ["JenkinsPublic"]


class TestTasks:
    """Test the task wiring and execution."""

    def test_integration_test_task(self, project):
        build, _ = project
        task = build.tasks["integrationTest"]
        assert task.type == "Test"
        assert task.group == "verification"
        assert task.description == "Runs tests with the jenkins-test-harness"
        assert task.depends_on == ["classes", "integrationTestClasses"]
        assert task.must_run_after == ["test"]
        assert task.should_run_after == []
        assert task.classpath == ["integrationTestRuntimeClasspath"]
        assert task.system_properties == {"buildDirectory": build.build_dir}

    def test_check_depends_on_integration_test(self, project):
        build, _ = project
        assert build.tasks["check"].depends_on == ["test", "integrationTest"]

    def test_documentation_tasks(self, project):
        build, _ = project
        sources = build.tasks["sourcesJar"]
        assert sources.type == "Jar"
        assert sources.classifier == "sources"
        assert sources.source_dirs == ["src", "vars", "resources"]
        groovydoc = build.tasks["groovydocJar"]
        assert groovydoc.classifier == "javadoc"
        assert groovydoc.depends_on == ["groovydoc"]

    def test_ivy_grab_support(self, project):
        """Test Ivy is on every Groovy compiler classpath and the unit test classpath."""
        build, _ = project
        compile_tasks = build.tasks.with_type("GroovyCompile")
        assert {t.name for t in compile_tasks} == {
            "compileGroovy", "compileTestGroovy", "compileIntegrationTestGroovy",
        }
        assert all(t.groovy_classpath == ["globalLibraryIvy"] for t in compile_tasks)
        assert build.tasks["test"].classpath == ["testRuntimeClasspath", "globalLibraryIvy"]

    def test_generated_sources_task(self, project):
        build, _ = project
        assert "generateLocalLibraryRetriever" in build.tasks["compileIntegrationTestGroovy"].depends_on

    def test_check_execution_order(self, project):
        """Test unit tests run before integration tests and the generator before its compile task."""
        build, _ = project
        order = [task.name for task in build.tasks.execution_plan(["check"])]
        assert order.index("test") < order.index("integrationTest")
        assert order.index("generateLocalLibraryRetriever") < order.index("compileIntegrationTestGroovy")
        assert order.index("classes") < order.index("integrationTest")
        assert order[-1] == "check"

    def test_run_check(self, project):
        """Test running check resolves every classpath and prepares the generated directory."""
        build, _ = project
        plan = build.tasks.run(["check"])
        assert all(task.outcome in ("SUCCESS", "UP-TO-DATE") for task in plan)
        assert os.path.isdir(os.path.join(build.build_dir, "generated-src", "integrationTest"))
        classpath = build.tasks["integrationTest"].results["classpath"]
        assert "/repo/org/jenkins-ci/main/jenkins-war/2.89.2/jenkins-war-2.89.2.war" in classpath
        assert (
            "/repo/org/jenkins-ci/plugins/workflow/workflow-cps/2.42/workflow-cps-2.42.hpi" in classpath
        )
        test_classpath = build.tasks["test"].results["classpath"]
        assert "/repo/org/apache/ivy/ivy/2.4.0/ivy-2.4.0.jar" in test_classpath

    def test_run_archives(self, project):
        build, _ = project
        build.tasks.run(["sourcesJar", "groovydocJar"])
        assert build.tasks["sourcesJar"].results["archive"] == os.path.join(
            build.build_dir, "libs", "pipeline-lib-unspecified-sources.jar"
        )
        assert build.tasks["groovydocJar"].results["archive"].endswith("-javadoc.jar")
