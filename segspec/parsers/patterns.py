# CUI // SP-CTI
"""Value-pattern recognizer shared by the format extractors.

Classifies a configuration string as a network destination. Rules are tried
in order and the first one that matches wins:

1. JDBC URL           jdbc:<driver>://<host>[:<port>][/...]
2. Generic URL        <scheme>://<host>[:<port>] for the allowed schemes
3. Kubernetes DNS     <svc>.<ns>.svc.cluster.local[...:<port>]
4. Bare host:port     <host>:<port>

A value that matches nothing yields no fact; that is a normal outcome.

Two flavours exist. The generic path (Spring, Compose, .env) only treats
http/https as URLs and always yields at most one fact. The cluster path used
for Kubernetes env values and ConfigMap data also accepts database and broker
schemes and returns every host:port occurrence in the value.
"""

import re
from typing import FrozenSet, List, Optional, Tuple
from urllib.parse import urlsplit

from segspec.model.dependency import Confidence, NetworkDependency

WEB_SCHEMES: FrozenSet[str] = frozenset({"http", "https"})
CLUSTER_SCHEMES: FrozenSet[str] = WEB_SCHEMES | frozenset({
    "postgresql", "postgres", "redis", "amqp", "mongodb", "mysql", "kafka",
})

_DEFAULT_URL_PORTS = {"http": 80, "https": 443}

JDBC_DEFAULT_PORTS = {
    "postgresql": 5432,
    "postgres": 5432,
    "mysql": 3306,
    "mariadb": 3306,
    "oracle": 1521,
    "sqlserver": 1433,
    "mssql": 1433,
}

JDBC_DESCRIPTIONS = {
    "postgresql": "PostgreSQL",
    "postgres": "PostgreSQL",
    "mysql": "MySQL",
    "mariadb": "MariaDB",
    "sqlserver": "SQL Server",
    "mssql": "SQL Server",
    "oracle": "Oracle",
}

# Embedded / in-memory engines, never a network dependency.
JDBC_SKIP_DRIVERS = frozenset({"h2", "derby"})

_JDBC_RE = re.compile(r"^jdbc:(\w+)://([^/:;?]+)(?::(\d+))?")
_JDBC_DRIVER_RE = re.compile(r"^jdbc:(\w+)[:/]", re.IGNORECASE)
_HOST_PORT_RE = re.compile(r"([a-zA-Z0-9][-a-zA-Z0-9_.]*):(\d{2,5})(?!\d)")
_K8S_DNS_RE = re.compile(
    r"([a-zA-Z0-9][-a-zA-Z0-9.]*)\.([a-zA-Z0-9][-a-zA-Z0-9]*)\.svc\.cluster\.local"
)


def _fact(target: str, port: int, description: str, confidence: Confidence,
          source_file: str) -> NetworkDependency:
    return NetworkDependency(
        target=target,
        port=port,
        protocol="TCP",
        description=description,
        confidence=confidence,
        source_file=source_file,
    )


def normalize_cluster_host(host: str) -> str:
    """Drop the ``.svc.cluster.local`` suffix: ``api.shop.svc.cluster.local`` -> ``api.shop``."""
    suffix = ".svc.cluster.local"
    if host.lower().endswith(suffix) and len(host) > len(suffix):
        return host[: -len(suffix)]
    return host


def _valid_host_port(host: str, port: int) -> bool:
    # "sha256:abc..." digests look like host:port
    return not host.lower().startswith("sha") and 1 <= port <= 65535


# ---------------------------------------------------------------------------
# Rule 1: JDBC
# ---------------------------------------------------------------------------

def is_embedded_jdbc(value: str) -> bool:
    """True for jdbc:h2:... / jdbc:derby:... URLs."""
    match = _JDBC_DRIVER_RE.match(value.strip())
    return bool(match) and match.group(1).lower() in JDBC_SKIP_DRIVERS


def parse_jdbc(value: str, source_file: str = "") -> Optional[NetworkDependency]:
    """Parse a JDBC URL into a dependency.

    An explicit port gives High confidence. A missing port falls back to the
    driver's default at Medium confidence; an unknown driver without a port
    yields nothing.
    """
    value = value.strip()
    if is_embedded_jdbc(value):
        return None
    match = _JDBC_RE.match(value)
    if not match:
        return None
    driver = match.group(1).lower()
    host = match.group(2)
    port_str = match.group(3)

    if port_str:
        port = int(port_str)
        confidence = Confidence.HIGH
    elif driver in JDBC_DEFAULT_PORTS:
        port = JDBC_DEFAULT_PORTS[driver]
        confidence = Confidence.MEDIUM
    else:
        return None

    return _fact(host, port, JDBC_DESCRIPTIONS.get(driver, driver), confidence, source_file)


# ---------------------------------------------------------------------------
# Rule 2: URL
# ---------------------------------------------------------------------------

def parse_url(value: str, source_file: str = "",
              schemes: FrozenSet[str] = WEB_SCHEMES) -> Optional[NetworkDependency]:
    """Parse ``scheme://host[:port]`` for one of the allowed schemes.

    http and https default to 80 and 443. Other schemes keep port 0 when no
    port is written.
    """
    value = value.strip()
    if "://" not in value:
        return None
    try:
        parts = urlsplit(value)
        port = parts.port
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    if scheme not in schemes or not parts.hostname:
        return None

    if port is None:
        port = _DEFAULT_URL_PORTS.get(scheme, 0)
    description = "HTTP service" if scheme in WEB_SCHEMES else f"{scheme} service"
    return _fact(normalize_cluster_host(parts.hostname), port, description,
                 Confidence.HIGH, source_file)


# ---------------------------------------------------------------------------
# Rule 3: Kubernetes internal DNS
# ---------------------------------------------------------------------------

def parse_k8s_dns(value: str, source_file: str = "") -> Optional[NetworkDependency]:
    """Match ``<svc>.<ns>.svc.cluster.local`` and normalize to ``<svc>.<ns>``."""
    match = _K8S_DNS_RE.search(value)
    if not match:
        return None
    target = f"{match.group(1)}.{match.group(2)}"
    port = 0
    port_match = _HOST_PORT_RE.search(value, match.start())
    if port_match:
        port = int(port_match.group(2))
    return _fact(target, port, "Kubernetes service DNS", Confidence.MEDIUM, source_file)


# ---------------------------------------------------------------------------
# Rule 4: host:port
# ---------------------------------------------------------------------------

def find_host_ports(value: str) -> List[Tuple[str, int]]:
    """Every plausible host:port pair in ``value``, in order of appearance."""
    pairs = []
    for match in _HOST_PORT_RE.finditer(value):
        host, port = match.group(1), int(match.group(2))
        if _valid_host_port(host, port):
            pairs.append((host, port))
    return pairs


def parse_host_ports(value: str) -> List[Tuple[str, int]]:
    """Split a comma-separated ``host:port`` list (Kafka bootstrap servers)."""
    result = []
    for part in value.split(","):
        found = find_host_ports(part.strip())
        if found:
            result.append(found[0])
    return result


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def _recognize_structured(value: str, source_file: str,
                          schemes: FrozenSet[str]) -> Tuple[bool, Optional[NetworkDependency]]:
    """Rules 1-3. Returns (decided, dep); decided=True stops further rules."""
    if value.lower().startswith("jdbc:"):
        dep = parse_jdbc(value, source_file)
        if dep is not None or is_embedded_jdbc(value):
            return True, dep

    dep = parse_url(value, source_file, schemes)
    if dep is not None:
        return True, dep

    dep = parse_k8s_dns(value, source_file)
    if dep is not None:
        return True, dep
    return False, None


def recognize(value: str, source_file: str = "",
              schemes: FrozenSet[str] = WEB_SCHEMES) -> Optional[NetworkDependency]:
    """Classify ``value`` and return at most one dependency (source left empty)."""
    if not isinstance(value, str) or not value.strip():
        return None
    value = value.strip()

    decided, dep = _recognize_structured(value, source_file, schemes)
    if decided:
        return dep

    pairs = find_host_ports(value)
    if pairs:
        host, port = pairs[0]
        return _fact(host, port, "network service", Confidence.MEDIUM, source_file)
    return None


def recognize_all(value: str, source_file: str = "",
                  schemes: FrozenSet[str] = CLUSTER_SCHEMES) -> List[NetworkDependency]:
    """Like ``recognize`` but returns every host:port occurrence for rule 4."""
    if not isinstance(value, str) or not value.strip():
        return []
    value = value.strip()

    decided, dep = _recognize_structured(value, source_file, schemes)
    if decided:
        return [dep] if dep is not None else []

    return [
        _fact(host, port, "network service", Confidence.MEDIUM, source_file)
        for host, port in find_host_ports(value)
    ]
