# CUI // SP-CTI
"""Extractor table mapping file-name globs to extractor functions.

The table is constructed explicitly by ``default_registry()`` and handed to
the walker; nothing registers itself at import time.

An extractor has the signature ``fn(path, data) -> List[NetworkDependency]``
where ``data`` is the raw file content. It raises ``ParseError`` for
malformed content and returns an empty list for well-formed content it does
not recognise.
"""

import fnmatch
import os
from typing import Callable, List, NamedTuple

from segspec.model.dependency import NetworkDependency

ParseFunc = Callable[[str, bytes], List[NetworkDependency]]


class RegistryEntry(NamedTuple):
    pattern: str
    fn: ParseFunc


class Registry:
    """Ordered list of (glob pattern, extractor) pairs."""

    def __init__(self):
        self._entries: List[RegistryEntry] = []

    def register(self, pattern: str, fn: ParseFunc) -> None:
        """Add an extractor for file names matching ``pattern``."""
        self._entries.append(RegistryEntry(pattern, fn))

    def match(self, filename: str) -> List[ParseFunc]:
        """Every extractor whose pattern matches the base name of ``filename``."""
        base = os.path.basename(filename)
        return [e.fn for e in self._entries if fnmatch.fnmatchcase(base, e.pattern)]

    def patterns(self) -> List[str]:
        """All registered glob patterns (for diagnostics)."""
        return [e.pattern for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)


def default_registry() -> Registry:
    """Build a fresh registry holding every built-in extractor."""
    from segspec.parsers import buildfile, compose, envfile, k8s, spring

    registry = Registry()
    for pattern in ("application.yml", "application.yaml",
                    "application-*.yml", "application-*.yaml"):
        registry.register(pattern, spring.parse_spring_yaml)
    for pattern in ("application.properties", "application-*.properties"):
        registry.register(pattern, spring.parse_spring_properties)
    for pattern in ("docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml"):
        registry.register(pattern, compose.parse_compose)
    for pattern in ("*.yaml", "*.yml"):
        registry.register(pattern, k8s.parse_k8s)
    registry.register(".env", envfile.parse_env_file)
    registry.register("pom.xml", buildfile.parse_pom_xml)
    registry.register("build.gradle", buildfile.parse_build_gradle)
    registry.register("build.gradle.kts", buildfile.parse_build_gradle)
    return registry
