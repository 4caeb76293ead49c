# CUI // SP-CTI
"""Command line interface."""
