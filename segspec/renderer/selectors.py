# CUI // SP-CTI
"""Target classification and Kubernetes name sanitization.

``classify_target`` maps a free-text destination onto the peer selector a
NetworkPolicy rule needs:

    10.0.0.5                 -> ipBlock 10.0.0.5/32
    orders.shop              -> podSelector app=orders + namespace shop
    postgres-0.postgres.db   -> podSelector app=postgres-0 + namespace postgres
    db                       -> podSelector app=db
"""

import ipaddress
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

NAMESPACE_LABEL = "kubernetes.io/metadata.name"
MAX_NAME_LENGTH = 63

_INVALID_NAME_CHARS = re.compile(r"[^a-z0-9-]")


class SelectorKind(Enum):
    POD = "pod"
    NAMESPACED_POD = "namespaced-pod"
    IP_BLOCK = "ip-block"


@dataclass(frozen=True)
class PeerSelector:
    """One ``to:``/``from:`` peer of a NetworkPolicy rule."""

    kind: SelectorKind
    pod_label: str = ""
    namespace: str = ""
    cidr: str = ""

    def to_peer(self) -> Dict[str, Any]:
        """Render as a NetworkPolicy peer mapping."""
        if self.kind is SelectorKind.IP_BLOCK:
            return {"ipBlock": {"cidr": self.cidr}}
        peer: Dict[str, Any] = {"podSelector": {"matchLabels": {"app": self.pod_label}}}
        if self.kind is SelectorKind.NAMESPACED_POD and self.namespace:
            peer["namespaceSelector"] = {"matchLabels": {NAMESPACE_LABEL: self.namespace}}
        return peer


def classify_target(target: str) -> PeerSelector:
    try:
        address = ipaddress.ip_address(target)
    except ValueError:
        address = None
    if address is not None:
        prefix = 32 if address.version == 4 else 128
        return PeerSelector(SelectorKind.IP_BLOCK, cidr=f"{target}/{prefix}")

    if "." in target:
        parts = target.split(".", 2)
        namespace = parts[1] if len(parts) >= 2 else ""
        return PeerSelector(SelectorKind.NAMESPACED_POD, pod_label=parts[0], namespace=namespace)

    return PeerSelector(SelectorKind.POD, pod_label=target)


def sanitize_name(name: str) -> str:
    """Convert ``name`` into a valid Kubernetes resource name."""
    cleaned = _INVALID_NAME_CHARS.sub("-", name.lower()).strip("-")
    cleaned = cleaned[:MAX_NAME_LENGTH].rstrip("-")
    return cleaned or "unknown"
