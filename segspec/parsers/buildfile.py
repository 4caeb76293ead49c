# CUI // SP-CTI
"""Build-file extractor (Maven ``pom.xml`` and Gradle build scripts).

A client library in the build implies the application talks to the matching
infrastructure service. These are weak signals, so every fact is Low
confidence with an empty source (resolved to the scanned app later).
"""

import logging
import re
import xml.etree.ElementTree as ET
from typing import Iterable, List, NamedTuple, Optional, Tuple

from segspec.model.dependency import Confidence, NetworkDependency
from segspec.parsers.yamldoc import decode_text
from segspec.resilience.errors import ParseError

logger = logging.getLogger("segspec.parsers.buildfile")


class KnownLib(NamedTuple):
    artifact_id: str
    target: str
    port: int
    description: str


KNOWN_LIBS = (
    KnownLib("spring-boot-starter-data-redis", "redis", 6379, "Redis (Spring Boot starter)"),
    KnownLib("jedis", "redis", 6379, "Redis (Jedis client)"),
    KnownLib("lettuce-core", "redis", 6379, "Redis (Lettuce client)"),
    KnownLib("kafka-clients", "kafka", 9092, "Kafka (clients)"),
    KnownLib("spring-kafka", "kafka", 9092, "Kafka (Spring)"),
    KnownLib("postgresql", "postgresql", 5432, "PostgreSQL"),
    KnownLib("spring-boot-starter-data-jpa", "postgresql", 5432, "PostgreSQL (Spring JPA)"),
    KnownLib("mysql-connector-java", "mysql", 3306, "MySQL"),
    KnownLib("mysql-connector-j", "mysql", 3306, "MySQL"),
    KnownLib("mongo-java-driver", "mongodb", 27017, "MongoDB"),
    KnownLib("spring-boot-starter-data-mongodb", "mongodb", 27017, "MongoDB (Spring)"),
    KnownLib("spring-boot-starter-amqp", "rabbitmq", 5672, "RabbitMQ (Spring AMQP)"),
    KnownLib("amqp-client", "rabbitmq", 5672, "RabbitMQ"),
    KnownLib("elasticsearch-rest-high-level-client", "elasticsearch", 9200, "Elasticsearch"),
    KnownLib("spring-data-elasticsearch", "elasticsearch", 9200, "Elasticsearch (Spring Data)"),
)

_LIBS_BY_ARTIFACT = {lib.artifact_id: lib for lib in KNOWN_LIBS}

GRADLE_DEP_RE = re.compile(
    r"""(?:implementation|compile|runtimeOnly|compileOnly|api)\s*[\(]?\s*['"]([^'"]+)['"]"""
)


def lookup_lib(artifact_id: str) -> Optional[KnownLib]:
    return _LIBS_BY_ARTIFACT.get(artifact_id)


def _facts(coordinates: Iterable[Tuple[str, str]], path: str) -> List[NetworkDependency]:
    deps = []
    for group, artifact in coordinates:
        lib = lookup_lib(artifact)
        if lib is None:
            continue
        deps.append(NetworkDependency(
            source="",
            target=lib.target,
            port=lib.port,
            protocol="TCP",
            description=f"build dependency: {group}:{artifact} -> {lib.description}",
            confidence=Confidence.LOW,
            source_file=path,
        ))
    return deps


# ---------------------------------------------------------------------------
# Maven
# ---------------------------------------------------------------------------

def _local(tag: str) -> str:
    """Strip an ``{namespace}`` prefix from an ElementTree tag."""
    return tag.rsplit("}", 1)[-1]


def _child_text(elem: ET.Element, name: str) -> str:
    for child in elem:
        if _local(child.tag) == name:
            return (child.text or "").strip()
    return ""


def pom_coordinates(root: ET.Element) -> List[Tuple[str, str]]:
    """``(groupId, artifactId)`` of each ``project/dependencies/dependency``.

    Only the top-level ``dependencies`` block counts; ``dependencyManagement``
    and plugin dependencies are not runtime clients.
    """
    coords = []
    for section in root:
        if _local(section.tag) != "dependencies":
            continue
        for dep in section:
            if _local(dep.tag) == "dependency":
                coords.append((_child_text(dep, "groupId"), _child_text(dep, "artifactId")))
    return coords


def parse_pom_xml(path: str, data: bytes) -> List[NetworkDependency]:
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise ParseError(f"invalid pom.xml: {exc}", path=path) from exc
    if _local(root.tag) != "project":
        logger.debug("%s: root element is <%s>, not <project>", path, _local(root.tag))
        return []
    return _facts(pom_coordinates(root), path)


# ---------------------------------------------------------------------------
# Gradle
# ---------------------------------------------------------------------------

def gradle_coordinates(text: str) -> List[Tuple[str, str]]:
    coords = []
    for line in text.splitlines():
        match = GRADLE_DEP_RE.search(line.strip())
        if not match:
            continue
        parts = match.group(1).split(":")
        if len(parts) >= 2:
            coords.append((parts[0], parts[1]))
    return coords


def parse_build_gradle(path: str, data: bytes) -> List[NetworkDependency]:
    return _facts(gradle_coordinates(decode_text(data)), path)
