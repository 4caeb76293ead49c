# CUI // SP-CTI
"""``.env`` file extractor."""

import logging
from typing import List, Set, Tuple

from segspec.model.dependency import Confidence, NetworkDependency
from segspec.parsers.patterns import recognize
from segspec.parsers.yamldoc import decode_text

logger = logging.getLogger("segspec.parsers.envfile")

WELL_KNOWN_ENV_VARS = {
    "DATABASE_URL": "database",
    "DB_URL": "database",
    "DB_HOST": "database",
    "REDIS_URL": "Redis",
    "REDIS_HOST": "Redis",
    "KAFKA_BROKERS": "Kafka",
    "KAFKA_BOOTSTRAP": "Kafka",
    "RABBITMQ_URL": "RabbitMQ",
    "RABBITMQ_HOST": "RabbitMQ",
    "AMQP_URL": "RabbitMQ",
    "MONGODB_URI": "MongoDB",
    "MONGODB_URL": "MongoDB",
    "MONGO_URL": "MongoDB",
    "MONGO_HOST": "MongoDB",
    "ELASTICSEARCH_URL": "Elasticsearch",
    "ELASTICSEARCH_HOST": "Elasticsearch",
    "API_URL": "API service",
    "SERVICE_URL": "service",
    "POSTGRES_HOST": "PostgreSQL",
    "POSTGRES_URL": "PostgreSQL",
    "MYSQL_HOST": "MySQL",
    "MYSQL_URL": "MySQL",
    "NATS_URL": "NATS",
    "MEMCACHED_HOST": "Memcached",
    "CONSUL_HTTP_ADDR": "Consul",
    "VAULT_ADDR": "Vault",
}

GENERIC_SUFFIXES = ("_URL", "_URI", "_HOST", "_ADDR")


def strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def describe_key(key: str) -> str:
    """Description for a well-known key, ``"service"`` for a suffix match, else ``""``."""
    upper = key.upper()
    if upper in WELL_KNOWN_ENV_VARS:
        return WELL_KNOWN_ENV_VARS[upper]
    if upper.endswith(GENERIC_SUFFIXES):
        return "service"
    return ""


def parse_env_file(path: str, data: bytes) -> List[NetworkDependency]:
    deps: List[NetworkDependency] = []
    seen: Set[Tuple[str, int]] = set()

    for raw_line in decode_text(data).splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        value = strip_quotes(value.strip())
        if not value:
            continue

        found = recognize(value, path)
        if found is None:
            continue
        if (found.target, found.port) in seen:
            continue
        seen.add((found.target, found.port))

        deps.append(NetworkDependency(
            source=found.source,
            target=found.target,
            port=found.port,
            protocol=found.protocol,
            description=describe_key(key) or found.description,
            confidence=Confidence.MEDIUM,
            source_file=path,
        ))

    logger.debug("%s: %d env dependencies", path, len(deps))
    return deps
