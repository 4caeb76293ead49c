# CUI // SP-CTI
"""Network dependency facts and the deduplicating DependencySet.

A ``NetworkDependency`` is one inferred or declared network relationship.
Identity is the canonical key ``source->target:port/protocol``; description,
confidence and source_file are display/provenance only.

``DependencySet`` keeps the first fact seen for each canonical key. A later
fact with the same key is dropped even if it carries a higher confidence or a
better description.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List


class Confidence(str, Enum):
    """How directly a dependency was observed."""

    HIGH = "high"      # explicit URL or host:port literal in config
    MEDIUM = "medium"  # env var, config map, or defaulted-port inference
    LOW = "low"        # inferred from build dependencies or image names

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class NetworkDependency:
    """A discovered network connection requirement."""

    source: str = ""
    target: str = ""
    port: int = 0
    protocol: str = "TCP"
    description: str = ""
    confidence: Confidence = Confidence.MEDIUM
    source_file: str = ""

    def __post_init__(self):
        protocol = str(self.protocol or "TCP").strip().upper() or "TCP"
        object.__setattr__(self, "protocol", protocol)
        object.__setattr__(self, "confidence", Confidence(self.confidence))

    def key(self) -> str:
        """Canonical identity used for deduplication and ordering."""
        return f"{self.source}->{self.target}:{self.port}/{self.protocol}"

    @property
    def has_port(self) -> bool:
        return self.port > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "source": self.source,
            "target": self.target,
            "port": self.port,
            "protocol": self.protocol,
            "description": self.description,
            "confidence": self.confidence.value,
            "source_file": self.source_file,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NetworkDependency":
        """Load from dict."""
        return cls(
            source=data.get("source", ""),
            target=data.get("target", ""),
            port=int(data.get("port", 0) or 0),
            protocol=data.get("protocol", "TCP"),
            description=data.get("description", ""),
            confidence=data.get("confidence", Confidence.MEDIUM.value),
            source_file=data.get("source_file", ""),
        )


def _by_key(deps: Iterable[NetworkDependency]) -> List[NetworkDependency]:
    return sorted(deps, key=lambda d: d.key())


class DependencySet:
    """Collects network dependencies for one named service with deduplication.

    ``add`` is safe to call from several extraction threads; the
    check-then-insert runs under a single lock.
    """

    def __init__(self, service_name: str):
        self.service_name = service_name
        self._deps: List[NetworkDependency] = []
        self._seen: set = set()
        self._lock = threading.Lock()

    def add(self, dep: NetworkDependency) -> bool:
        """Insert ``dep`` unless its canonical key is already present.

        Returns True when the fact was stored, False for a duplicate.
        """
        key = dep.key()
        with self._lock:
            if key in self._seen:
                return False
            self._seen.add(key)
            self._deps.append(dep)
            return True

    def add_all(self, deps: Iterable[NetworkDependency]) -> int:
        """Add every fact; return how many were new."""
        return sum(1 for dep in deps if self.add(dep))

    def merge(self, other: "DependencySet") -> None:
        """Add all dependencies from another set into this one."""
        self.add_all(other._snapshot())

    def contains_key(self, key: str) -> bool:
        with self._lock:
            return key in self._seen

    def keys(self) -> set:
        with self._lock:
            return set(self._seen)

    def _snapshot(self) -> List[NetworkDependency]:
        with self._lock:
            return list(self._deps)

    def dependencies(self) -> List[NetworkDependency]:
        """All dependencies sorted by canonical key."""
        return _by_key(self._snapshot())

    def sources(self) -> List[str]:
        """Sorted, deduplicated non-empty source names."""
        return sorted({d.source for d in self._snapshot() if d.source})

    def services(self) -> List[str]:
        """Sorted names appearing as either a source or a target."""
        names = set()
        for dep in self._snapshot():
            if dep.source:
                names.add(dep.source)
            if dep.target:
                names.add(dep.target)
        return sorted(names)

    def ingress_for(self, service: str) -> List[NetworkDependency]:
        """Dependencies whose target is ``service`` (inbound connections)."""
        return _by_key(d for d in self._snapshot() if d.target == service)

    def egress_for(self, service: str) -> List[NetworkDependency]:
        """Dependencies whose source is ``service`` (outbound connections)."""
        return _by_key(d for d in self._snapshot() if d.source == service)

    def filtered(self, deps: Iterable[NetworkDependency]) -> "DependencySet":
        """Return a new set for the same service holding only ``deps``."""
        result = DependencySet(self.service_name)
        result.add_all(deps)
        return result

    def __len__(self) -> int:
        with self._lock:
            return len(self._deps)

    def __iter__(self):
        return iter(self.dependencies())

    def __repr__(self) -> str:
        return f"DependencySet(service_name={self.service_name!r}, size={len(self)})"
