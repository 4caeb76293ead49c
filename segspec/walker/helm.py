# CUI // SP-CTI
"""Render Helm charts with ``helm template``.

The chart is rendered under the fixed release name ``segspec-render``; the
output is plain Kubernetes YAML for the manifest extractor.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Union

from segspec.resilience.errors import HelmRenderError

logger = logging.getLogger("segspec.walker.helm")

RELEASE_NAME = "segspec-render"
DEFAULT_TIMEOUT = 30


def render_helm_template(chart_dir: Union[str, Path], values_file: Optional[str] = None,
                         binary: str = "helm", timeout: int = DEFAULT_TIMEOUT) -> str:
    """Run ``helm template`` on ``chart_dir`` and return the rendered YAML.

    Raises:
        HelmRenderError: helm is not installed, timed out, or exited non-zero.
    """
    chart = str(chart_dir)
    if shutil.which(binary) is None:
        raise HelmRenderError(f"{binary} not installed", chart=chart)

    cmd = [binary, "template", RELEASE_NAME, chart]
    if values_file:
        cmd += ["-f", str(values_file)]

    logger.debug("Executing: %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            stdin=subprocess.DEVNULL,
        )
    except subprocess.TimeoutExpired as exc:
        raise HelmRenderError(f"helm template timed out after {timeout}s", chart=chart) from exc
    except OSError as exc:
        raise HelmRenderError(f"helm template failed: {exc}", chart=chart) from exc

    if result.returncode != 0:
        detail = result.stderr.strip() or f"exit code {result.returncode}"
        raise HelmRenderError(f"helm template failed: {detail}", chart=chart)
    return result.stdout
