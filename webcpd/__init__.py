"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

from importlib import metadata

try:
    __version__ = metadata.version("webcpd")
except metadata.PackageNotFoundError:
    __version__ = "dev"
