# CUI // SP-CTI
"""Docker Compose extractor.

Per service in the ``services`` map:

- ``ports``: the container side of each mapping is an exposed port (High).
- ``depends_on``: each referenced service is a dependency (Medium, port 0),
  upgraded to High with a port when the referenced service runs a
  well-known infrastructure image.
- ``image``: a well-known image yields a Low self fact.
- ``environment``: values run through the value-pattern recognizer
  (downgraded from High to Medium).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from segspec.model.dependency import Confidence, NetworkDependency
from segspec.parsers.patterns import recognize
from segspec.parsers.yamldoc import decode_text, load_single, to_int

logger = logging.getLogger("segspec.parsers.compose")

# Ordered: prefix matching walks this table top to bottom.
WELL_KNOWN_IMAGES: Dict[str, Tuple[int, str]] = {
    "postgres": (5432, "PostgreSQL"),
    "mysql": (3306, "MySQL"),
    "mariadb": (3306, "MariaDB"),
    "redis": (6379, "Redis"),
    "mongo": (27017, "MongoDB"),
    "rabbitmq": (5672, "RabbitMQ"),
    "elasticsearch": (9200, "Elasticsearch"),
    "kafka": (9092, "Kafka"),
    "nats": (4222, "NATS"),
    "memcached": (11211, "Memcached"),
    "consul": (8500, "Consul"),
    "etcd": (2379, "etcd"),
    "zookeeper": (2181, "ZooKeeper"),
    "minio": (9000, "MinIO"),
    "vault": (8200, "Vault"),
}


# ---------------------------------------------------------------------------
# List-or-map fields
# ---------------------------------------------------------------------------

@dataclass
class StringList:
    """``depends_on: [a, b]`` or ``environment: ["K=V"]``."""
    items: List[str] = field(default_factory=list)


@dataclass
class StringMap:
    """``depends_on: {a: {...}}`` or ``environment: {K: V}``."""
    entries: Dict[str, Any] = field(default_factory=dict)


StringListOrMap = Union[StringList, StringMap]


def decode_list_or_map(value: Any) -> StringListOrMap:
    """Decode one of the two Compose wire shapes; anything else is an empty list."""
    if isinstance(value, list):
        return StringList([item for item in value if isinstance(item, str)])
    if isinstance(value, dict):
        return StringMap({str(k): v for k, v in value.items()})
    return StringList()


def depends_on_names(value: Any) -> List[str]:
    field_value = decode_list_or_map(value)
    if isinstance(field_value, StringMap):
        return list(field_value.entries)
    return list(field_value.items)


def environment_values(value: Any) -> Dict[str, str]:
    field_value = decode_list_or_map(value)
    result: Dict[str, str] = {}
    if isinstance(field_value, StringMap):
        for key, val in field_value.entries.items():
            if isinstance(val, str):
                result[key] = val
    else:
        for item in field_value.items:
            key, sep, val = item.partition("=")
            if sep:
                result[key] = val
    return result


# ---------------------------------------------------------------------------
# Ports and images
# ---------------------------------------------------------------------------

def parse_container_port(entry: Any) -> Tuple[int, str]:
    """Return ``(container_port, protocol)`` for one ``ports`` entry.

    Accepts ``"8080"``, ``"8080:80"``, ``"127.0.0.1:8080:80/udp"``, ranges
    (first port kept), bare integers and the long syntax
    (``{target: 80, protocol: udp}``). Port 0 means unparseable.
    """
    if isinstance(entry, bool):
        return 0, "TCP"
    if isinstance(entry, int):
        return entry, "TCP"
    if isinstance(entry, dict):
        protocol = str(entry.get("protocol") or "TCP").upper()
        return to_int(entry.get("target")), protocol
    if not isinstance(entry, str):
        return 0, "TCP"

    spec = entry.strip()
    protocol = "TCP"
    spec, slash, proto = spec.partition("/")
    if slash and proto.strip().lower() == "udp":
        protocol = "UDP"
    container = spec.split(":")[-1]
    container = container.split("-", 1)[0]
    return to_int(container), protocol


def image_name(image: str) -> str:
    """``docker.io/library/postgres:15`` -> ``postgres``."""
    name = image.rsplit("/", 1)[-1]
    name = name.split(":", 1)[0]
    name = name.split("@", 1)[0]
    return name.lower()


def infer_from_image(image: Optional[str]) -> Tuple[int, str]:
    """Well-known port and description for an image, or ``(0, "")``."""
    if not image or not isinstance(image, str):
        return 0, ""
    name = image_name(image)
    if name in WELL_KNOWN_IMAGES:
        return WELL_KNOWN_IMAGES[name]
    for prefix, info in WELL_KNOWN_IMAGES.items():
        if name.startswith(prefix):
            return info
    return 0, ""


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def parse_compose(path: str, data: bytes) -> List[NetworkDependency]:
    """Registry entry point for Compose files."""
    doc = load_single(decode_text(data), path)
    services = doc.get("services") if isinstance(doc, dict) else None
    if not isinstance(services, dict):
        logger.debug("%s: no services map", path)
        return []

    deps: List[NetworkDependency] = []
    for service_name, service in services.items():
        service_name = str(service_name)
        if not isinstance(service, dict):
            service = {}
        deps.extend(_service_dependencies(service_name, service, services, path))
    return deps


def _service_dependencies(name: str, service: Dict[str, Any],
                          services: Dict[str, Any], path: str) -> List[NetworkDependency]:
    deps = []

    ports = service.get("ports")
    for entry in ports if isinstance(ports, list) else []:
        port, protocol = parse_container_port(entry)
        if port > 0:
            deps.append(NetworkDependency(
                source=name,
                target=name,
                port=port,
                protocol=protocol,
                description="exposed port",
                confidence=Confidence.HIGH,
                source_file=path,
            ))

    for dep_name in depends_on_names(service.get("depends_on")):
        port, description, confidence = 0, "depends_on", Confidence.MEDIUM
        referenced = services.get(dep_name)
        if isinstance(referenced, dict):
            known_port, known_desc = infer_from_image(referenced.get("image"))
            if known_port > 0:
                port, description, confidence = known_port, known_desc, Confidence.HIGH
        deps.append(NetworkDependency(
            source=name,
            target=dep_name,
            port=port,
            protocol="TCP",
            description=description,
            confidence=confidence,
            source_file=path,
        ))

    own_port, own_desc = infer_from_image(service.get("image"))
    if own_port > 0:
        deps.append(NetworkDependency(
            source=name,
            target=name,
            port=own_port,
            protocol="TCP",
            description=f"{own_desc} (inferred from image)",
            confidence=Confidence.LOW,
            source_file=path,
        ))

    for value in environment_values(service.get("environment")).values():
        found = recognize(value, path)
        if found is None:
            continue
        confidence = Confidence.MEDIUM if found.confidence is Confidence.HIGH else found.confidence
        deps.append(NetworkDependency(
            source=name,
            target=found.target,
            port=found.port,
            protocol=found.protocol,
            description=found.description,
            confidence=confidence,
            source_file=path,
        ))

    return deps
