# [TEMPLATE: CUI // SP-CTI]
"""Tests for segspec.parsers.registry: the constructed extractor table."""

from segspec.parsers import compose, k8s, spring
from segspec.parsers.registry import Registry, default_registry


class TestRegistry:
    def test_match_in_registration_order(self):
        registry = Registry()
        first = lambda path, data: []  # noqa: E731
        second = lambda path, data: []  # noqa: E731
        registry.register("*.yml", first)
        registry.register("app.yml", second)
        assert registry.match("conf/app.yml") == [first, second]

    def test_match_uses_basename(self):
        registry = Registry()
        fn = lambda path, data: []  # noqa: E731
        registry.register("pom.xml", fn)
        assert registry.match("/a/b/pom.xml") == [fn]
        assert registry.match("/pom.xml/other.txt") == []

    def test_patterns(self):
        registry = Registry()
        registry.register(".env", lambda p, d: [])
        assert registry.patterns() == [".env"]
        assert len(registry) == 1


class TestDefaultRegistry:
    def test_fresh_table_each_call(self):
        assert default_registry() is not default_registry()

    def test_spring_yaml_also_scanned_as_manifest(self):
        fns = default_registry().match("src/main/resources/application.yml")
        assert fns == [spring.parse_spring_yaml, k8s.parse_k8s]

    def test_profile_files(self):
        assert spring.parse_spring_properties in default_registry().match("application-prod.properties")
        assert spring.parse_spring_yaml in default_registry().match("application-dev.yaml")

    def test_compose_names(self):
        for name in ("docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml"):
            assert compose.parse_compose in default_registry().match(name)

    def test_unrelated_file(self):
        assert default_registry().match("README.md") == []

    def test_build_and_env_files(self):
        registry = default_registry()
        for name in (".env", "pom.xml", "build.gradle", "build.gradle.kts"):
            assert registry.match(name), name
