# CUI // SP-CTI
"""Kubernetes manifest extractor.

Reads multi-document YAML and extracts dependencies from the kinds that
carry network information:

- Deployment / StatefulSet: container ports, env values that look like
  endpoints, and configMapKeyRef / secretKeyRef references.
- Service: declared service ports.
- ConfigMap: endpoint-looking values under ``data``.

Any other kind is ignored. The same entry point handles the output of
``helm template`` via ``parse_k8s_content``.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List

from segspec.model.dependency import Confidence, NetworkDependency
from segspec.parsers.patterns import CLUSTER_SCHEMES, recognize_all
from segspec.parsers.yamldoc import (
    decode_text,
    load_documents,
    navigate_list,
    navigate_map,
    to_int,
)

logger = logging.getLogger("segspec.parsers.k8s")


class ManifestKind(Enum):
    """Manifest kinds the extractor distinguishes."""

    DEPLOYMENT = "Deployment"
    STATEFUL_SET = "StatefulSet"
    SERVICE = "Service"
    CONFIG_MAP = "ConfigMap"
    OTHER = ""

    @classmethod
    def of(cls, doc: Dict[str, Any]) -> "ManifestKind":
        kind = doc.get("kind")
        for member in cls:
            if member is not cls.OTHER and member.value == kind:
                return member
        return cls.OTHER


def has_k8s_marker(text: str) -> bool:
    """Cheap pre-filter: both ``apiVersion:`` and ``kind:`` must appear."""
    return "apiVersion:" in text and "kind:" in text


def parse_k8s(path: str, data: bytes) -> List[NetworkDependency]:
    """Registry entry point for ``*.yaml`` / ``*.yml`` files."""
    return parse_k8s_content(decode_text(data), path)


def parse_k8s_content(content: str, source_label: str) -> List[NetworkDependency]:
    """Parse manifest YAML (possibly multi-document).

    ``source_label`` becomes the ``source_file`` of every returned fact; Helm
    rendering passes a label naming the chart instead of a file path.
    """
    if not has_k8s_marker(content):
        return []

    deps: List[NetworkDependency] = []
    for doc in load_documents(content, source_label):
        if not isinstance(doc, dict):
            continue
        deps.extend(_dispatch(doc, source_label))
    return deps


def _dispatch(doc: Dict[str, Any], path: str) -> List[NetworkDependency]:
    parser = KIND_PARSERS.get(ManifestKind.of(doc))
    if parser is None:
        return []
    return parser(doc, path)


def metadata_name(doc: Dict[str, Any]) -> str:
    meta = doc.get("metadata")
    name = meta.get("name") if isinstance(meta, dict) else None
    if not isinstance(name, str) or not name:
        return "unknown"
    return name


# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------

def _parse_workload(doc: Dict[str, Any], path: str) -> List[NetworkDependency]:
    deps = []
    workload = metadata_name(doc)

    for container in navigate_list(doc, "spec", "template", "spec", "containers"):
        if not isinstance(container, dict):
            continue

        for port_entry in navigate_list(container, "ports"):
            if not isinstance(port_entry, dict):
                continue
            port = to_int(port_entry.get("containerPort"))
            if port > 0:
                deps.append(NetworkDependency(
                    source=workload,
                    target=workload,
                    port=port,
                    protocol=port_entry.get("protocol") or "TCP",
                    description=f"container port {port}",
                    confidence=Confidence.HIGH,
                    source_file=path,
                ))

        for env in navigate_list(container, "env"):
            if isinstance(env, dict):
                deps.extend(_parse_env_entry(env, workload, path))

    return deps


def _parse_env_entry(env: Dict[str, Any], workload: str, path: str) -> List[NetworkDependency]:
    deps = []
    env_name = env.get("name") or ""
    value = env.get("value")

    if isinstance(value, str) and value:
        for found in recognize_all(value, path, CLUSTER_SCHEMES):
            deps.append(NetworkDependency(
                source=workload,
                target=found.target,
                port=found.port,
                protocol=found.protocol,
                description=f"env {env_name}: {found.description} {value}",
                confidence=Confidence.HIGH,
                source_file=path,
            ))

    value_from = env.get("valueFrom")
    if isinstance(value_from, dict):
        for ref_key, label in (("configMapKeyRef", "ConfigMap"), ("secretKeyRef", "Secret")):
            ref = value_from.get(ref_key)
            ref_name = ref.get("name") if isinstance(ref, dict) else None
            if isinstance(ref_name, str) and ref_name:
                deps.append(NetworkDependency(
                    source=workload,
                    target=ref_name,
                    port=0,
                    protocol="TCP",
                    description=f"env {env_name} references {label} {ref_name}",
                    confidence=Confidence.MEDIUM,
                    source_file=path,
                ))
    return deps


def _parse_service(doc: Dict[str, Any], path: str) -> List[NetworkDependency]:
    deps = []
    service = metadata_name(doc)

    for port_entry in navigate_list(doc, "spec", "ports"):
        if not isinstance(port_entry, dict):
            continue
        port = to_int(port_entry.get("port"))
        if port <= 0:
            continue
        target_port = to_int(port_entry.get("targetPort"))
        description = f"service port {port}"
        if target_port > 0 and target_port != port:
            description = f"service port {port} -> targetPort {target_port}"
        deps.append(NetworkDependency(
            source=service,
            target=service,
            port=port,
            protocol=port_entry.get("protocol") or "TCP",
            description=description,
            confidence=Confidence.HIGH,
            source_file=path,
        ))
    return deps


def _parse_config_map(doc: Dict[str, Any], path: str) -> List[NetworkDependency]:
    deps = []
    name = metadata_name(doc)
    data = navigate_map(doc, "data")
    if data is None:
        return deps

    for key, value in data.items():
        if not isinstance(value, str):
            continue
        for found in recognize_all(value, path, CLUSTER_SCHEMES):
            deps.append(NetworkDependency(
                source=name,
                target=found.target,
                port=found.port,
                protocol=found.protocol,
                description=f"{key}: {found.description}",
                confidence=Confidence.MEDIUM,
                source_file=path,
            ))
    return deps


KIND_PARSERS: Dict[ManifestKind, Callable[[Dict[str, Any], str], List[NetworkDependency]]] = {
    ManifestKind.DEPLOYMENT: _parse_workload,
    ManifestKind.STATEFUL_SET: _parse_workload,
    ManifestKind.SERVICE: _parse_service,
    ManifestKind.CONFIG_MAP: _parse_config_map,
}
