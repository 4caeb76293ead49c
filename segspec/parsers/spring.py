# CUI // SP-CTI
"""Spring Boot configuration extractor.

Handles ``application.yml`` / ``application.yaml`` (every ``---`` profile
document is scanned) and ``application.properties``. Both dialects check the
same set of well-known keys:

    spring.datasource.url             JDBC URL
    spring.redis.host / port          Spring Boot 2.x (default port 6379)
    spring.data.redis.host / port     Spring Boot 3.x (default port 6379)
    spring.kafka.bootstrap-servers    comma-separated host:port list
    spring.rabbitmq.host / port       default port 5672
    server.port                       the application's own port ("self")

Every other value is run through the value-pattern recognizer. Results
within one file are merged on ``(target, port)``, which ignores
source and protocol: the schema pass and the generic pass often find the same
endpoint with different descriptions.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from segspec.model.dependency import Confidence, NetworkDependency
from segspec.parsers.patterns import parse_host_ports, parse_jdbc, recognize
from segspec.parsers.yamldoc import decode_text, load_documents, to_int, walk_strings

logger = logging.getLogger("segspec.parsers.spring")

REDIS_DEFAULT_PORT = 6379
RABBITMQ_DEFAULT_PORT = 5672

HANDLED_PROPERTY_KEYS = frozenset({
    "spring.datasource.url",
    "spring.redis.host", "spring.redis.port",
    "spring.data.redis.host", "spring.data.redis.port",
    "spring.kafka.bootstrap-servers",
    "spring.rabbitmq.host", "spring.rabbitmq.port",
    "server.port",
})


@dataclass
class HostPortSetting:
    host: str = ""
    port: int = 0


@dataclass
class SpringConfig:
    """The subset of a Spring configuration document segspec understands."""

    datasource_url: str = ""
    redis: HostPortSetting = field(default_factory=HostPortSetting)
    data_redis: HostPortSetting = field(default_factory=HostPortSetting)
    kafka_bootstrap_servers: str = ""
    rabbitmq: HostPortSetting = field(default_factory=HostPortSetting)
    server_port: int = 0

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "SpringConfig":
        """Decode the known keys from a nested YAML document."""
        return cls(
            datasource_url=_str_at(doc, "spring", "datasource", "url"),
            redis=_host_port_at(doc, "spring", "redis"),
            data_redis=_host_port_at(doc, "spring", "data", "redis"),
            kafka_bootstrap_servers=_str_at(doc, "spring", "kafka", "bootstrap-servers"),
            rabbitmq=_host_port_at(doc, "spring", "rabbitmq"),
            server_port=to_int(_value_at(doc, "server", "port")),
        )

    @classmethod
    def from_properties(cls, props: Dict[str, str]) -> "SpringConfig":
        """Decode the known keys from flat ``key=value`` properties."""
        return cls(
            datasource_url=props.get("spring.datasource.url", ""),
            redis=HostPortSetting(props.get("spring.redis.host", ""),
                                  to_int(props.get("spring.redis.port"))),
            data_redis=HostPortSetting(props.get("spring.data.redis.host", ""),
                                       to_int(props.get("spring.data.redis.port"))),
            kafka_bootstrap_servers=props.get("spring.kafka.bootstrap-servers", ""),
            rabbitmq=HostPortSetting(props.get("spring.rabbitmq.host", ""),
                                     to_int(props.get("spring.rabbitmq.port"))),
            server_port=to_int(props.get("server.port")),
        )


def _value_at(doc: Any, *keys: str) -> Any:
    current = doc
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _str_at(doc: Any, *keys: str) -> str:
    value = _value_at(doc, *keys)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value if isinstance(value, str) else ""


def _host_port_at(doc: Any, *keys: str) -> HostPortSetting:
    return HostPortSetting(
        host=_str_at(doc, *keys, "host"),
        port=to_int(_value_at(doc, *keys, "port")),
    )


def _fact(target: str, port: int, description: str, path: str) -> NetworkDependency:
    return NetworkDependency(
        target=target,
        port=port,
        protocol="TCP",
        description=description,
        confidence=Confidence.HIGH,
        source_file=path,
    )


def extract_spring_deps(cfg: SpringConfig, path: str) -> List[NetworkDependency]:
    """Dependencies implied by the well-known Spring keys of one document."""
    deps = []

    if cfg.datasource_url:
        dep = parse_jdbc(cfg.datasource_url, path)
        if dep is not None:
            deps.append(dep)

    for setting in (cfg.redis, cfg.data_redis):
        if setting.host:
            deps.append(_fact(setting.host, setting.port or REDIS_DEFAULT_PORT, "Redis", path))

    if cfg.kafka_bootstrap_servers:
        for host, port in parse_host_ports(cfg.kafka_bootstrap_servers):
            deps.append(_fact(host, port, "Kafka", path))

    if cfg.rabbitmq.host:
        deps.append(_fact(cfg.rabbitmq.host, cfg.rabbitmq.port or RABBITMQ_DEFAULT_PORT,
                          "RabbitMQ", path))

    if cfg.server_port:
        deps.append(_fact("self", cfg.server_port, "server listening port", path))

    return deps


def merge_unique(base: List[NetworkDependency],
                 extra: Iterable[NetworkDependency]) -> List[NetworkDependency]:
    """Append facts from ``extra`` whose ``(target, port)`` is not yet in ``base``."""
    seen = {(d.target, d.port) for d in base}
    for dep in extra:
        key: Tuple[str, int] = (dep.target, dep.port)
        if key not in seen:
            seen.add(key)
            base.append(dep)
    return base


# ---------------------------------------------------------------------------
# application.yml
# ---------------------------------------------------------------------------

def parse_spring_yaml(path: str, data: bytes) -> List[NetworkDependency]:
    """Scan every profile document with the schema pass, then the generic pass."""
    documents = [doc for doc in load_documents(decode_text(data), path) if isinstance(doc, dict)]

    deps: List[NetworkDependency] = []
    for doc in documents:
        merge_unique(deps, extract_spring_deps(SpringConfig.from_document(doc), path))

    for doc in documents:
        found = [recognize(value, path) for value in walk_strings(doc)]
        merge_unique(deps, [d for d in found if d is not None])

    logger.debug("%s: %d Spring dependencies from %d document(s)", path, len(deps), len(documents))
    return deps


# ---------------------------------------------------------------------------
# application.properties
# ---------------------------------------------------------------------------

def parse_properties(text: str) -> Dict[str, str]:
    """Parse Java properties lines into a dict (last assignment wins)."""
    props: Dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or line.startswith("!"):
            continue
        idx = _separator_index(line)
        if idx is None:
            continue
        key = line[:idx].strip()
        if key:
            props[key] = line[idx + 1:].strip()
    return props


def _separator_index(line: str) -> Optional[int]:
    positions = [pos for pos in (line.find("="), line.find(":")) if pos >= 0]
    return min(positions) if positions else None


def parse_spring_properties(path: str, data: bytes) -> List[NetworkDependency]:
    """Known keys first, then every unhandled value through the recognizer."""
    props = parse_properties(decode_text(data))
    deps = extract_spring_deps(SpringConfig.from_properties(props), path)

    for key, value in props.items():
        if key in HANDLED_PROPERTY_KEYS:
            continue
        dep = recognize(value, path)
        if dep is not None:
            merge_unique(deps, [dep])

    return deps
