# CUI // SP-CTI
"""Interactive review of discovered dependencies before rendering."""

from segspec.review.picker import Picker, run_picker  # noqa: F401
