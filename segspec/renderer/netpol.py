# CUI // SP-CTI
"""Kubernetes NetworkPolicy rendering.

Two modes:

``network_policy``
    Single-service mode. A ``<svc>-default-deny`` policy plus a
    ``<svc>-egress`` policy allowing every known destination, with DNS to
    kube-system always allowed.

``per_service_network_policy``
    Mesh mode. One ``<svc>-netpol`` per service seen as a source or target,
    carrying ingress rules (who calls it) and egress rules (what it calls).

Facts without a usable port (port <= 0) never produce a port-scoped rule.
"""

import logging
from collections import OrderedDict
from typing import Any, Dict, List, Tuple

import yaml

from segspec.model.dependency import DependencySet, NetworkDependency
from segspec.renderer.selectors import NAMESPACE_LABEL, classify_target, sanitize_name

logger = logging.getLogger("segspec.renderer.netpol")

API_VERSION = "networking.k8s.io/v1"
REVIEW_COMMENT = "# Review: verify podSelector labels match your deployment\n"
DEFAULT_GENERATED_BY = "segspec"
DEFAULT_DNS_NAMESPACE = "kube-system"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _to_yaml(data: dict) -> str:
    return yaml.dump(data, default_flow_style=False, sort_keys=False)


def _port(port: int, protocol: str) -> Dict[str, Any]:
    return {"port": port, "protocol": (protocol or "TCP").upper()}


def _dns_rule(namespace: str) -> Dict[str, Any]:
    return {
        "to": [{"namespaceSelector": {"matchLabels": {NAMESPACE_LABEL: namespace}}}],
        "ports": [_port(53, "UDP"), _port(53, "TCP")],
    }


def _egress_rule(target: str, port: int, protocol: str) -> Dict[str, Any]:
    return {
        "to": [classify_target(target).to_peer()],
        "ports": [_port(port, protocol)],
    }


def _policy(name: str, app: str, policy_types: List[str], generated_by: str) -> Dict[str, Any]:
    return {
        "apiVersion": API_VERSION,
        "kind": "NetworkPolicy",
        "metadata": {
            "name": name,
            "labels": {"generated-by": generated_by},
        },
        "spec": {
            "podSelector": {"matchLabels": {"app": app}},
            "policyTypes": policy_types,
        },
    }


def _join(documents: List[Dict[str, Any]]) -> str:
    return "---\n".join(_to_yaml(doc) for doc in documents)


# ---------------------------------------------------------------------------
# Single-service mode
# ---------------------------------------------------------------------------

def network_policy(ds: DependencySet, generated_by: str = DEFAULT_GENERATED_BY,
                   dns_namespace: str = DEFAULT_DNS_NAMESPACE) -> str:
    """Render the default-deny and egress-allow policy pair for ``ds``.

    Targets of facts without a port are listed in a trailing
    ``# Skipped (no port): ...`` comment. Returns "" for an empty set.
    """
    deps = ds.dependencies()
    if not deps:
        return ""

    rules: "OrderedDict[Tuple[str, int, str], None]" = OrderedDict()
    skipped = set()
    for dep in deps:
        if not dep.has_port:
            skipped.add(dep.target)
            continue
        rules.setdefault((dep.target, dep.port, dep.protocol), None)

    svc = sanitize_name(ds.service_name)

    deny = _policy(f"{svc}-default-deny", svc, ["Ingress", "Egress"], generated_by)
    egress = _policy(f"{svc}-egress", svc, ["Egress"], generated_by)
    egress["spec"]["egress"] = [_egress_rule(*rule) for rule in rules]
    egress["spec"]["egress"].append(_dns_rule(dns_namespace))

    text = REVIEW_COMMENT + _join([deny, egress])
    if skipped:
        text += f"# Skipped (no port): {', '.join(sorted(skipped))}\n"
    logger.debug("rendered %d egress rules for %s, %d skipped", len(rules), svc, len(skipped))
    return text


# ---------------------------------------------------------------------------
# Mesh mode
# ---------------------------------------------------------------------------

def _ingress_rules(ingress: List[NetworkDependency]) -> List[Dict[str, Any]]:
    """One rule per calling service, listing the ports it uses.

    A caller known only through port-less facts gets a rule without ports.
    """
    by_source: "OrderedDict[str, List[Tuple[int, str]]]" = OrderedDict()
    for dep in ingress:
        if not dep.source:
            continue
        ports = by_source.setdefault(dep.source, [])
        if dep.has_port and (dep.port, dep.protocol) not in ports:
            ports.append((dep.port, dep.protocol))

    rules = []
    for source, ports in by_source.items():
        rule: Dict[str, Any] = {"from": [classify_target(source).to_peer()]}
        if ports:
            rule["ports"] = [_port(port, protocol) for port, protocol in ports]
        rules.append(rule)
    return rules


def per_service_network_policy(ds: DependencySet, generated_by: str = DEFAULT_GENERATED_BY,
                               dns_namespace: str = DEFAULT_DNS_NAMESPACE) -> str:
    """Render one ingress+egress policy per service. Returns "" for an empty set."""
    if len(ds) == 0:
        return ""

    documents = []
    for service in ds.services():
        svc = sanitize_name(service)
        policy = _policy(f"{svc}-netpol", svc, ["Ingress", "Egress"], generated_by)

        ingress = _ingress_rules(ds.ingress_for(service))
        if ingress:
            policy["spec"]["ingress"] = ingress

        egress = [
            _egress_rule(dep.target, dep.port, dep.protocol)
            for dep in ds.egress_for(service)
            if dep.has_port
        ]
        if egress:
            egress.append(_dns_rule(dns_namespace))
            policy["spec"]["egress"] = egress

        documents.append(policy)

    logger.debug("rendered %d per-service policies", len(documents))
    return REVIEW_COMMENT + _join(documents)
