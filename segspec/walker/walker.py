# CUI // SP-CTI
"""Directory walker.

Walks a project tree, feeds every file whose name matches the extractor
table into its extractors, and collects the facts into one DependencySet
named after the root directory. Helm charts (directories holding
``Chart.yaml``) are additionally rendered with ``helm template`` and parsed
as Kubernetes manifests.

Per-file failures become ``WalkWarning`` entries; only an unusable root is
fatal.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from segspec.model.dependency import DependencySet, NetworkDependency
from segspec.parsers.k8s import parse_k8s_content
from segspec.parsers.registry import Registry
from segspec.resilience.errors import ParseError, ScanError, SegspecError
from segspec.walker.helm import DEFAULT_TIMEOUT, render_helm_template

logger = logging.getLogger("segspec.walker.walker")

DEFAULT_SKIP_DIRS = frozenset({"node_modules", "vendor", "target", ".git", ".svn", "__pycache__"})


@dataclass
class WalkOptions:
    helm_values_file: Optional[str] = None
    skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS
    workers: int = 1
    helm_binary: str = "helm"
    helm_timeout: int = DEFAULT_TIMEOUT
    render_helm: bool = True

    @classmethod
    def from_config(cls, config: dict, **overrides) -> "WalkOptions":
        """Build options from the ``walker`` and ``helm`` config sections."""
        walker_cfg = config.get("walker", {})
        helm_cfg = config.get("helm", {})
        options = cls(
            skip_dirs=frozenset(walker_cfg.get("skip_dirs", DEFAULT_SKIP_DIRS)),
            workers=int(walker_cfg.get("workers", 1) or 1),
            helm_binary=helm_cfg.get("binary", "helm"),
            helm_timeout=int(helm_cfg.get("timeout_seconds", DEFAULT_TIMEOUT)),
        )
        for key, value in overrides.items():
            if value is not None:
                setattr(options, key, value)
        return options


@dataclass
class WalkWarning:
    """A non-fatal failure tied to one file (relative path)."""

    file: str
    error: Exception

    def __str__(self) -> str:
        return f"{self.file}: {self.error}"

    def to_dict(self) -> dict:
        return {"file": self.file, "error": str(self.error)}


@dataclass
class WalkResult:
    dependencies: DependencySet
    warnings: List[WalkWarning] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Tree traversal
# ---------------------------------------------------------------------------

def iter_files(root: Path, skip_dirs: Iterable[str]) -> Iterator[Path]:
    """Yield every regular file under ``root``, pruning skipped directories."""
    skip = set(skip_dirs)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in skip)
        for name in sorted(filenames):
            yield Path(dirpath) / name


def detect_helm_charts(root: Path, skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS) -> List[Path]:
    """Directories under ``root`` that contain a ``Chart.yaml``."""
    return [path.parent for path in iter_files(root, skip_dirs) if path.name == "Chart.yaml"]


def _relative(root: Path, path: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def _with_source(deps: List[NetworkDependency], service_name: str) -> List[NetworkDependency]:
    return [
        dep if dep.source else NetworkDependency(
            source=service_name,
            target=dep.target,
            port=dep.port,
            protocol=dep.protocol,
            description=dep.description,
            confidence=dep.confidence,
            source_file=dep.source_file,
        )
        for dep in deps
    ]


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

FileOutcome = Tuple[List[NetworkDependency], List[WalkWarning]]


def _extract_file(path: Path, rel: str, registry: Registry) -> FileOutcome:
    parsers = registry.match(str(path))
    if not parsers:
        return [], []

    try:
        data = path.read_bytes()
    except OSError as exc:
        logger.warning("Cannot read %s: %s", rel, exc)
        return [], [WalkWarning(rel, exc)]

    deps: List[NetworkDependency] = []
    warnings: List[WalkWarning] = []
    for fn in parsers:
        try:
            deps.extend(fn(str(path), data))
        except SegspecError as exc:
            logger.debug("%s: %s failed: %s", rel, getattr(fn, "__name__", fn), exc)
            warnings.append(WalkWarning(rel, exc))
        except Exception as exc:
            # Unanticipated content, reported like a ParseError.
            logger.warning("%s: %s crashed (%s: %s)", rel, getattr(fn, "__name__", fn),
                           type(exc).__name__, exc, exc_info=logger.isEnabledFor(logging.DEBUG))
            warnings.append(WalkWarning(rel, ParseError(f"{type(exc).__name__}: {exc}", path=rel)))
    return deps, warnings


def _render_charts(root: Path, options: WalkOptions) -> FileOutcome:
    deps: List[NetworkDependency] = []
    warnings: List[WalkWarning] = []
    if not options.render_helm:
        return deps, warnings

    for chart_dir in detect_helm_charts(root, options.skip_dirs):
        rel = _relative(root, chart_dir)
        chart_file = "Chart.yaml" if rel == "." else f"{rel}/Chart.yaml"
        try:
            rendered = render_helm_template(
                chart_dir,
                options.helm_values_file,
                binary=options.helm_binary,
                timeout=options.helm_timeout,
            )
            deps.extend(parse_k8s_content(rendered, f"{chart_file} (helm template)"))
        except SegspecError as exc:
            logger.warning("Helm chart %s skipped: %s", chart_file, exc)
            warnings.append(WalkWarning(chart_file, exc))
        except Exception as exc:
            logger.warning("Helm chart %s output unreadable (%s: %s)", chart_file, type(exc).__name__, exc)
            warnings.append(WalkWarning(chart_file, ParseError(f"{type(exc).__name__}: {exc}", path=chart_file)))
    return deps, warnings


def walk(root, registry: Registry, options: Optional[WalkOptions] = None) -> WalkResult:
    """Scan ``root`` and return every dependency found plus per-file warnings.

    Facts with an empty source are attributed to the root directory's name.

    Raises:
        ScanError: ``root`` does not exist or is not a directory.
    """
    options = options or WalkOptions()
    root_path = Path(root)
    if not root_path.exists():
        raise ScanError(f"path does not exist: {root}", path=str(root))
    if not root_path.is_dir():
        raise ScanError(f"not a directory: {root}", path=str(root))

    service_name = root_path.resolve().name
    ds = DependencySet(service_name)
    warnings: List[WalkWarning] = []

    files = [(path, _relative(root_path, path)) for path in iter_files(root_path, options.skip_dirs)]

    if options.workers > 1:
        with ThreadPoolExecutor(max_workers=options.workers) as executor:
            outcomes = list(executor.map(lambda item: _extract_file(item[0], item[1], registry), files))
    else:
        outcomes = [_extract_file(path, rel, registry) for path, rel in files]

    for deps, file_warnings in outcomes:
        ds.add_all(_with_source(deps, service_name))
        warnings.extend(file_warnings)

    helm_deps, helm_warnings = _render_charts(root_path, options)
    ds.add_all(_with_source(helm_deps, service_name))
    warnings.extend(helm_warnings)

    logger.info("Scanned %s: %d dependencies, %d warnings", service_name, len(ds), len(warnings))
    return WalkResult(dependencies=ds, warnings=warnings)
