#!/usr/bin/env python3
# CUI // SP-CTI
"""segspec command line.

Usage:
    segspec analyze ./my-app/
    segspec analyze ./my-app/ --format netpol
    segspec analyze ./my-app/ -f per-service -o policies.yaml
    segspec analyze github.com/org/repo --ai local
    segspec analyze ./my-app/ --json

The path may be a local directory or a GitHub repository URL; URLs are
shallow-cloned into a temporary directory that is removed afterwards.
"""

import argparse
import json
import logging
import shutil
import subprocess
import sys
import tempfile
from typing import List, Optional, TextIO
from urllib.parse import urlsplit

from segspec import __version__
from segspec.config import load_config
from segspec.llm.analyzer import analyze as ai_analyze
from segspec.llm.analyzer import resolve_provider
from segspec.model.dependency import DependencySet
from segspec.parsers.registry import default_registry
from segspec.renderer import network_policy, per_service_network_policy, summary
from segspec.resilience.errors import CollaboratorError, SegspecError
from segspec.review.picker import run_picker
from segspec.walker.walker import WalkOptions, WalkResult, walk

logger = logging.getLogger("segspec.cli.main")

FORMATS = ("summary", "netpol", "per-service", "all")
AI_PROVIDERS = ("auto", "local", "cloud")


# ---------------------------------------------------------------------------
# GitHub sources
# ---------------------------------------------------------------------------

def _with_scheme(arg: str) -> str:
    lower = arg.lower()
    if lower.startswith("http://") or lower.startswith("https://"):
        return arg
    return "https://" + arg


def is_github_url(arg: str) -> bool:
    """True only when the host is exactly github.com.

    ``github.com.evil.com`` and ``evil.github.com`` are rejected.
    """
    try:
        host = urlsplit(_with_scheme(arg)).hostname
    except ValueError:
        return False
    return (host or "").lower() == "github.com"


def normalize_github_url(arg: str) -> str:
    return _with_scheme(arg)


def clone_repo(url: str, timeout: int = 60) -> str:
    """Shallow-clone ``url`` into a new temp directory and return its path.

    The caller removes the directory. On failure it is removed here.
    """
    tmp_dir = tempfile.mkdtemp(prefix="segspec-clone-")
    try:
        result = subprocess.run(
            ["git", "clone", "--depth", "1", url, tmp_dir],
            capture_output=True,
            text=True,
            timeout=timeout,
            stdin=subprocess.DEVNULL,
        )
    except subprocess.TimeoutExpired as exc:
        shutil.rmtree(tmp_dir, ignore_errors=True)
        raise CollaboratorError(f"git clone timed out after {timeout} seconds", source="git") from exc
    except OSError as exc:
        shutil.rmtree(tmp_dir, ignore_errors=True)
        raise CollaboratorError(f"git clone failed: {exc}", source="git") from exc

    if result.returncode != 0:
        shutil.rmtree(tmp_dir, ignore_errors=True)
        detail = result.stderr.strip() or f"exit code {result.returncode}"
        raise CollaboratorError(f"git clone failed: {detail}", source="git")
    return tmp_dir


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

def render(ds: DependencySet, fmt: str, config: dict) -> str:
    renderer_cfg = config.get("renderer", {})
    kwargs = {
        "generated_by": renderer_cfg.get("generated_by", "segspec"),
        "dns_namespace": renderer_cfg.get("dns_namespace", "kube-system"),
    }
    if fmt == "summary":
        return summary(ds)
    if fmt == "netpol":
        return network_policy(ds, **kwargs)
    if fmt == "per-service":
        return per_service_network_policy(ds, **kwargs)
    if fmt == "all":
        return summary(ds) + "---\n" + network_policy(ds, **kwargs)
    raise ValueError(f"unknown format: {fmt} (valid: {', '.join(FORMATS)})")


def to_json(result: WalkResult) -> str:
    ds = result.dependencies
    return json.dumps({
        "service": ds.service_name,
        "dependencies": [dep.to_dict() for dep in ds.dependencies()],
        "warnings": [warning.to_dict() for warning in result.warnings],
    }, indent=2)


def _report_warnings(result: WalkResult, verbose: bool, stderr: TextIO) -> None:
    if not result.warnings:
        return
    if verbose:
        for warning in result.warnings:
            print(f"Warning: {warning}", file=stderr)
    else:
        print(f"Warning: {len(result.warnings)} file(s) could not be parsed "
              "(use --verbose for details)", file=stderr)


def _is_terminal(stream) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


# ---------------------------------------------------------------------------
# analyze
# ---------------------------------------------------------------------------

def run_analyze(args: argparse.Namespace, config: dict,
                stdout: TextIO = None, stderr: TextIO = None, stdin: TextIO = None) -> int:
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    stdin = stdin or sys.stdin

    path = args.path
    clone_dir = None
    if is_github_url(path):
        url = normalize_github_url(path)
        print(f"Cloning {url}...", file=stderr)
        clone_dir = clone_repo(url, timeout=config.get("git", {}).get("clone_timeout_seconds", 60))
        path = clone_dir

    try:
        options = WalkOptions.from_config(
            config,
            helm_values_file=args.helm_values,
            workers=args.workers,
        )
        result = walk(path, default_registry(), options)
        _report_warnings(result, args.verbose, stderr)
        ds = result.dependencies

        if args.ai:
            try:
                provider = resolve_provider(args.ai, config)
                for dep in ai_analyze(path, ds.dependencies(), provider,
                                      service_name=ds.service_name, config=config,
                                      notice_stream=stderr):
                    ds.add(dep)
            except CollaboratorError as exc:
                print(f"Warning: AI analysis skipped: {exc}", file=stderr)
    finally:
        if clone_dir:
            shutil.rmtree(clone_dir, ignore_errors=True)

    if args.json_output:
        print(to_json(result), file=stdout)
        return 0

    if len(ds) == 0:
        print("No network dependencies found.", file=stdout)
        return 0

    if args.interactive:
        if not (_is_terminal(stdin) and _is_terminal(stdout)):
            print("Warning: --interactive requires a terminal, falling back to non-interactive",
                  file=stderr)
        else:
            selected = run_picker(ds.dependencies(), stdin, stdout)
            if selected is None:
                print("Cancelled.", file=stderr)
                return 0
            ds = ds.filtered(selected)

    output = render(ds, args.format, config)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as fh:
            fh.write(output)
        logger.info("Wrote %s output to %s", args.format, args.output)
    else:
        stdout.write(output)
    return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="segspec",
        description="Generate Kubernetes NetworkPolicy from application configs",
    )
    parser.add_argument("--version", action="version", version=f"segspec {__version__}")
    sub = parser.add_subparsers(dest="command", help="segspec command")

    p_analyze = sub.add_parser(
        "analyze",
        help="Analyze application configs and generate network policies",
        description=(
            "Scan a directory (or a GitHub repository URL) for Spring, Compose, "
            "Kubernetes, Helm, .env and build files, infer network dependencies, "
            "and render NetworkPolicy YAML."
        ),
    )
    p_analyze.add_argument("path", nargs="?", help="Project directory or GitHub URL")
    p_analyze.add_argument("-f", "--format", default="summary", choices=FORMATS,
                           help="Output format (default: summary)")
    p_analyze.add_argument("-o", "--output", default="", help="Write output to file (default: stdout)")
    p_analyze.add_argument("--ai", nargs="?", const="auto", default=None, metavar="PROVIDER",
                           help="AI backend: local (Ollama), cloud (Gemini), or auto (default when bare)")
    p_analyze.add_argument("-i", "--interactive", action="store_true",
                           help="Review dependencies interactively before generating output")
    p_analyze.add_argument("--helm-values", default=None, help="Helm values file for chart rendering")
    p_analyze.add_argument("--workers", type=int, default=None,
                           help="Parallel extraction threads (default from config)")
    p_analyze.add_argument("--json", action="store_true", dest="json_output",
                           help="Print dependencies and warnings as JSON")
    p_analyze.add_argument("-v", "--verbose", action="store_true", help="Show warning details and debug logs")
    return parser


def _fix_optional_ai(args: argparse.Namespace) -> None:
    """``analyze --ai ./app`` means auto provider with path ./app."""
    if args.path is None and args.ai and args.ai not in AI_PROVIDERS:
        args.path, args.ai = args.ai, "auto"


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    _fix_optional_ai(args)
    if not args.path:
        parser.error("analyze requires a path or GitHub URL")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config()
        return run_analyze(args, config)
    except (SegspecError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
