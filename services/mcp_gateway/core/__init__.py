"""
Core logic package.

Provides shared helpers such as URL building, response normalization and
semantic version comparison.
"""

from .utils import build_api_url, normalize_path, parse_upstream_response
from .versioning import compare_versions, is_newer, parse_version

__all__ = [
    "build_api_url",
    "normalize_path",
    "parse_upstream_response",
    "compare_versions",
    "is_newer",
    "parse_version",
]
