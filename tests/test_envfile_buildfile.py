# [TEMPLATE: CUI // SP-CTI]
"""Tests for segspec.parsers.envfile and segspec.parsers.buildfile."""

import textwrap

import pytest

from segspec.model.dependency import Confidence
from segspec.parsers.buildfile import gradle_coordinates, parse_build_gradle, parse_pom_xml
from segspec.parsers.envfile import describe_key, parse_env_file, strip_quotes
from segspec.resilience.errors import ParseError


# ---------------------------------------------------------------------------
# .env
# ---------------------------------------------------------------------------
class TestEnvFile:
    def _parse(self, text):
        return parse_env_file(".env", textwrap.dedent(text).encode())

    def test_well_known_keys(self):
        deps = self._parse("""\
            # database
            DATABASE_URL="postgres://user:pw@pg:5432/app"
            REDIS_HOST=cache:6379
        """)
        by_target = {d.target: d for d in deps}
        assert by_target["cache"].description == "Redis"
        assert all(d.confidence is Confidence.MEDIUM for d in deps)

    def test_suffix_heuristic(self):
        [d] = self._parse("BILLING_URL=http://billing:8080\n")
        assert d.description == "service"

    def test_unknown_key_keeps_recognizer_description(self):
        [d] = self._parse("SOMETHING=http://thing:8080\n")
        assert d.description == "HTTP service"

    def test_export_prefix(self):
        [d] = self._parse("export API_URL='http://api:8000'\n")
        assert (d.target, d.port, d.description) == ("api", 8000, "API service")

    def test_dedupe_by_target_and_port(self):
        deps = self._parse("A_URL=http://x:81\nB_URL=http://x:81/other\n")
        assert len(deps) == 1

    def test_high_confidence_forced_to_medium(self):
        [d] = self._parse("SERVICE_URL=https://svc\n")
        assert d.confidence is Confidence.MEDIUM

    def test_skips_blank_and_invalid_lines(self):
        assert self._parse("\n# only comments\nNOEQUALS\nEMPTY=\n") == []

    def test_helpers(self):
        assert strip_quotes('"x"') == "x"
        assert strip_quotes("'x") == "'x"
        assert describe_key("vault_addr") == "Vault"
        assert describe_key("LOG_LEVEL") == ""


# ---------------------------------------------------------------------------
# Build files
# ---------------------------------------------------------------------------
POM = b"""<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <dependencyManagement>
    <dependencies>
      <dependency>
        <groupId>redis.clients</groupId>
        <artifactId>jedis</artifactId>
      </dependency>
    </dependencies>
  </dependencyManagement>
  <dependencies>
    <dependency>
      <groupId>org.postgresql</groupId>
      <artifactId>postgresql</artifactId>
    </dependency>
    <dependency>
      <groupId>org.springframework.kafka</groupId>
      <artifactId>spring-kafka</artifactId>
    </dependency>
    <dependency>
      <groupId>com.google.guava</groupId>
      <artifactId>guava</artifactId>
    </dependency>
  </dependencies>
</project>
"""


class TestPom:
    def test_known_artifacts(self):
        deps = parse_pom_xml("pom.xml", POM)
        assert [(d.target, d.port) for d in deps] == [("postgresql", 5432), ("kafka", 9092)]
        assert deps[0].description == "build dependency: org.postgresql:postgresql -> PostgreSQL"
        assert all(d.confidence is Confidence.LOW and d.source == "" for d in deps)

    def test_without_namespace(self):
        xml = b"<project><dependencies><dependency><groupId>g</groupId>" \
              b"<artifactId>amqp-client</artifactId></dependency></dependencies></project>"
        [d] = parse_pom_xml("pom.xml", xml)
        assert (d.target, d.port) == ("rabbitmq", 5672)

    def test_malformed(self):
        with pytest.raises(ParseError):
            parse_pom_xml("pom.xml", b"<project><dependencies>")


class TestGradle:
    GRADLE = textwrap.dedent("""\
        dependencies {
            implementation 'org.springframework.boot:spring-boot-starter-data-redis:3.2.0'
            runtimeOnly("org.mongodb:mongo-java-driver:3.12.14")
            testImplementation 'junit:junit:4.13'
            api "co.elastic:elasticsearch-rest-high-level-client:7.17.0"
        }
    """).encode()

    def test_known_artifacts(self):
        deps = parse_build_gradle("build.gradle", self.GRADLE)
        assert [d.target for d in deps] == ["redis", "mongodb", "elasticsearch"]

    def test_coordinates(self):
        assert gradle_coordinates("compileOnly 'a:b:1'") == [("a", "b")]
        assert gradle_coordinates("implementation 'single'") == []
