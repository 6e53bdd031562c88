"""Tests for the plugin resolution cascade."""

from unittest.mock import MagicMock

import pytest

from buildmodel.errors import ConfigurationStateError, CyclicConfigurationError, ResolutionError
from buildmodel.memory import InMemoryBuild
from buildmodel.models import Coordinate, ResolvedArtifact
from resolution.cascade import (
    ResolutionCascade,
    archives_as_declared,
    archives_as_libraries,
    module_libraries,
    transitive_libraries,
)
from resolution.catalog import CatalogResolver

SEED = "jenkinsPlugins"
HPIS = "jenkinsPluginHpisAndJpis"
LIBRARIES = "jenkinsPluginLibraries"
COMPILE_ONLY = "jenkinsLibrariesMainCompileOnly"


def artifact(notation, extension):
    return ResolvedArtifact(Coordinate.parse(notation), extension, f"/repo/{notation}.{extension}")


def create_catalog():
    catalog = CatalogResolver(files_root="/repo")
    catalog.add("g:plugin-a:1.0", packaging="hpi", dependencies=["g:lib-x:2.0"])
    catalog.add("g:plugin-j:3.1", packaging="jpi")
    catalog.add("g:lib-x:2.0")
    catalog.add("com.cloudbees:groovy-cps:1.21")
    return catalog


def create_build(tmp_path, resolver=None, plugins=("g:plugin-a:1.0",)):
    """Seed, three targets, and an integration classpath extending two of them."""
    build = InMemoryBuild(project_dir=str(tmp_path), resolver=resolver or create_catalog())
    build.add_repository("JenkinsPublic", "https://repo.jenkins-ci.org/public/")
    for name in (SEED, HPIS, LIBRARIES, COMPILE_ONLY, "integrationRuntime", "unitRuntime"):
        build.create_configuration(name, can_be_consumed=False)
    build.extends_from("integrationRuntime", HPIS, LIBRARIES)

    def add_plugins(name):
        for notation in plugins:
            build.add_dependency(name, notation)

    build.with_dependencies(SEED, add_plugins)
    cascade = ResolutionCascade(build, SEED)
    cascade.derive(HPIS, archives_as_declared)
    cascade.derive(LIBRARIES, archives_as_libraries)
    cascade.derive(LIBRARIES, transitive_libraries)
    return build, cascade


def notations(coordinates):
    return sorted(str(c) for c in coordinates)


class TestRules:
    """Test the pure derivation rules."""

    ARTIFACTS = [
        artifact("g:plugin-a:1.0", "hpi"),
        artifact("g:plugin-j:3.1", "jpi"),
        artifact("g:lib-x:2.0", "jar"),
        artifact("g:thing:1.0", "zip"),
    ]

    def test_archives_as_declared(self):
        """Test plugin archives keep their own extension."""
        assert notations(archives_as_declared(self.ARTIFACTS)) == ["g:plugin-a:1.0@hpi", "g:plugin-j:3.1@jpi"]

    def test_archives_as_libraries(self):
        """Test plugin archives are requested as their jar."""
        assert notations(archives_as_libraries(self.ARTIFACTS)) == ["g:plugin-a:1.0@jar", "g:plugin-j:3.1@jar"]

    def test_transitive_libraries(self):
        assert notations(transitive_libraries(self.ARTIFACTS)) == ["g:lib-x:2.0@jar"]

    def test_module_libraries(self):
        """Test the single-module rule yields a plain, transitive coordinate."""
        rule = module_libraries("com.cloudbees", "groovy-cps")
        result = rule(self.ARTIFACTS + [artifact("com.cloudbees:groovy-cps:1.21", "jar")])
        assert result == [Coordinate("com.cloudbees", "groovy-cps", "1.21")]
        assert "groovy-cps" in rule.__name__

    def test_classifier_kept(self):
        """Test derived coordinates keep the resolved artifact's classifier."""
        artifacts = [artifact("g:lib-x:2.0:tests", "jar")]
        assert notations(transitive_libraries(artifacts)) == ["g:lib-x:2.0:tests@jar"]
        assert module_libraries("g", "lib-x")(artifacts) == [Coordinate("g", "lib-x", "2.0", None, "tests")]

    def test_empty_input(self):
        assert archives_as_declared([]) == []
        assert archives_as_libraries([]) == []
        assert transitive_libraries([]) == []


class TestExpand:
    """Test evaluating derivations without touching the build."""

    def test_expand_is_pure(self, tmp_path):
        build, cascade = create_build(tmp_path)
        result = cascade.expand([artifact("g:plugin-a:1.0", "hpi"), artifact("g:lib-x:2.0", "jar")])
        assert notations(result[HPIS]) == ["g:plugin-a:1.0@hpi"]
        assert notations(result[LIBRARIES]) == ["g:lib-x:2.0@jar", "g:plugin-a:1.0@jar"]
        assert build.dependencies(HPIS) == []
        assert not cascade.activated

    def test_expand_deduplicates(self, tmp_path):
        _, cascade = create_build(tmp_path)
        duplicated = [artifact("g:plugin-a:1.0", "hpi"), artifact("g:plugin-a:1.0", "hpi")]
        assert len(cascade.expand(duplicated)[LIBRARIES]) == 1

    def test_unknown_extension_ignored(self, tmp_path):
        """Test artifacts with other extensions contribute nothing."""
        _, cascade = create_build(tmp_path)
        assert cascade.expand([artifact("g:thing:1.0", "zip")]) == {HPIS: [], LIBRARIES: []}


class TestCascade:
    """Test activation through the build's resolution pre-pass."""

    def test_derived_configurations(self, tmp_path):
        """Test a seed holding one hpi plugin with a transitive jar."""
        build, cascade = create_build(tmp_path)
        cascade.register()
        build.resolve("integrationRuntime")
        assert notations(build.dependencies(HPIS)) == ["g:plugin-a:1.0@hpi"]
        assert notations(build.dependencies(LIBRARIES)) == ["g:lib-x:2.0@jar", "g:plugin-a:1.0@jar"]

    def test_integration_classpath_contents(self, tmp_path):
        """Test the derived coordinates resolve to the archive, its jar and the library."""
        build, cascade = create_build(tmp_path)
        cascade.register()
        files = sorted(a.file for a in build.resolve("integrationRuntime"))
        assert files == [
            "/repo/g/lib-x/2.0/lib-x-2.0.jar",
            "/repo/g/plugin-a/1.0/plugin-a-1.0.hpi",
            "/repo/g/plugin-a/1.0/plugin-a-1.0.jar",
        ]

    def test_seed_resolved_exactly_once(self, tmp_path):
        """Test the seed resolves once even when several consumers trigger the cascade."""
        build, cascade = create_build(tmp_path)
        listener = MagicMock()
        build.before_resolve(SEED, listener)
        cascade.register()
        build.resolve("integrationRuntime")
        build.resolve(HPIS)
        build.resolve(LIBRARIES)
        build.resolve(SEED)
        listener.assert_called_once_with(SEED)

    def test_seed_resolved_before_consumer(self, tmp_path):
        """Test ordering: the seed resolves before the consumer's own listeners run."""
        build, cascade = create_build(tmp_path)
        order = []
        build.before_resolve(SEED, order.append)
        build.before_resolve("integrationRuntime", order.append)
        cascade.register()
        build.resolve("integrationRuntime")
        assert order == [SEED, "integrationRuntime"]

    def test_unrelated_configuration_does_not_trigger(self, tmp_path):
        build, cascade = create_build(tmp_path)
        cascade.register()
        assert cascade.plan("unitRuntime") == []
        build.resolve("unitRuntime")
        assert not build.is_resolved(SEED)
        assert not cascade.activated

    def test_plan(self, tmp_path):
        _, cascade = create_build(tmp_path)
        assert cascade.plan("integrationRuntime") == [SEED]
        assert cascade.plan(HPIS) == [SEED]
        assert cascade.plan(SEED) == []

    def test_idempotent(self, tmp_path):
        """Test activating twice adds no duplicate coordinates."""
        build, cascade = create_build(tmp_path)
        cascade.register()
        first = cascade.activate()
        second = cascade.activate()
        assert first is second
        assert len(build.dependencies(LIBRARIES)) == 2
        assert len(build.dependencies(HPIS)) == 1

    def test_seed_resolved_directly_applies_derivations(self, tmp_path):
        """Test resolving the seed by itself also populates the targets."""
        build, cascade = create_build(tmp_path)
        cascade.register()
        build.resolve(SEED)
        assert cascade.activated
        assert notations(build.dependencies(HPIS)) == ["g:plugin-a:1.0@hpi"]

    def test_seed_resolved_before_registration(self, tmp_path):
        """Test activation still happens when the seed was resolved earlier."""
        build, cascade = create_build(tmp_path)
        build.resolve(SEED)
        cascade.register()
        build.resolve("integrationRuntime")
        assert notations(build.dependencies(HPIS)) == ["g:plugin-a:1.0@hpi"]

    def test_empty_seed(self, tmp_path):
        """Test no plugins leaves every target empty."""
        build, cascade = create_build(tmp_path, plugins=())
        cascade.register()
        assert build.resolve("integrationRuntime") == []
        assert cascade.activated
        assert build.dependencies(HPIS) == []
        assert build.dependencies(LIBRARIES) == []

    def test_jpi_plugins(self, tmp_path):
        build, cascade = create_build(tmp_path, plugins=("g:plugin-j:3.1",))
        cascade.register()
        build.resolve("integrationRuntime")
        assert notations(build.dependencies(HPIS)) == ["g:plugin-j:3.1@jpi"]
        assert notations(build.dependencies(LIBRARIES)) == ["g:plugin-j:3.1@jar"]

    def test_module_rule_feeds_compile_only(self, tmp_path):
        build, cascade = create_build(
            tmp_path, plugins=("g:plugin-a:1.0", "com.cloudbees:groovy-cps:1.21")
        )
        cascade.derive(COMPILE_ONLY, module_libraries("com.cloudbees", "groovy-cps"))
        cascade.register()
        artifacts = build.resolve(COMPILE_ONLY)
        assert [a.module_version for a in artifacts] == ["com.cloudbees:groovy-cps:1.21"]

    def test_targets_frozen_after_activation(self, tmp_path):
        build, cascade = create_build(tmp_path)
        cascade.register()
        build.resolve("integrationRuntime")
        with pytest.raises(ConfigurationStateError):
            build.add_dependency(LIBRARIES, "g:other:1.0@jar")

    def test_derive_after_activation(self, tmp_path):
        build, cascade = create_build(tmp_path)
        cascade.register()
        cascade.activate()
        with pytest.raises(ConfigurationStateError):
            cascade.derive(COMPILE_ONLY, transitive_libraries)
        assert build.dependencies(COMPILE_ONLY) == []

    def test_register_is_idempotent(self, tmp_path):
        build, cascade = create_build(tmp_path)
        cascade.register()
        cascade.register()
        build.resolve("integrationRuntime")
        assert len(build.dependencies(LIBRARIES)) == 2


class TestCascadeErrors:
    """Test failure handling."""

    def test_resolution_error_propagates(self, tmp_path):
        """Test a missing plugin surfaces with its coordinate and the searched repositories."""
        build, cascade = create_build(tmp_path, plugins=("g:missing:1.0",))
        cascade.register()
        with pytest.raises(ResolutionError) as exc:
            build.resolve("integrationRuntime")
        assert exc.value.coordinate == "g:missing:1.0"
        assert exc.value.repositories == ["JenkinsPublic"]
        assert exc.value.configuration == SEED
        assert not cascade.activated
        assert build.dependencies(HPIS) == []
        assert build.dependencies(LIBRARIES) == []

    def test_target_is_seed(self, tmp_path):
        _, cascade = create_build(tmp_path)
        with pytest.raises(CyclicConfigurationError):
            cascade.derive(SEED, archives_as_declared)

    def test_seed_extends_target(self, tmp_path):
        """Test a seed whose hierarchy contains a derived configuration is rejected."""
        build, cascade = create_build(tmp_path)
        build.extends_from(SEED, LIBRARIES)
        cascade.register()
        with pytest.raises(CyclicConfigurationError) as exc:
            build.resolve("integrationRuntime")
        assert exc.value.path == [SEED, LIBRARIES, SEED]
        assert not build.is_resolved(SEED)

    def test_rule_failure_leaves_targets_untouched(self, tmp_path):
        """Test every rule is evaluated before any target is populated."""
        build, cascade = create_build(tmp_path)

        def broken(_artifacts):
            raise ValueError("broken rule")

        cascade.derive(COMPILE_ONLY, broken)
        cascade.register()
        with pytest.raises(ValueError):
            build.resolve("integrationRuntime")
        assert build.dependencies(HPIS) == []
        assert build.dependencies(LIBRARIES) == []
        assert not cascade.activated
