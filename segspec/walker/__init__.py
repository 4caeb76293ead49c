# CUI // SP-CTI
"""Project tree walking and Helm chart rendering."""

from segspec.walker.helm import render_helm_template  # noqa: F401
from segspec.walker.walker import (  # noqa: F401
    WalkOptions,
    WalkResult,
    WalkWarning,
    detect_helm_charts,
    walk,
)
