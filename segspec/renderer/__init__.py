# CUI // SP-CTI
"""Policy synthesis: NetworkPolicy YAML and the human-readable summary."""

from segspec.renderer.netpol import network_policy, per_service_network_policy  # noqa: F401
from segspec.renderer.selectors import (  # noqa: F401
    PeerSelector,
    SelectorKind,
    classify_target,
    sanitize_name,
)
from segspec.renderer.summary import summary  # noqa: F401
