"""
Path Utils
==========
Path normalisation for file locations found in analyzer reports.

Responsibilities:
    - Strip the local-file URI scheme (file:///, file://) from SARIF URIs
    - Percent-decode URI paths (%20 → space)
    - Normalise path separators to forward slashes

Paths are never checked against the filesystem.
"""
from urllib.parse import unquote

_FILE_SCHEME_PREFIXES = ("file:///", "file://", "file:")


def strip_file_scheme(uri: str) -> str:
    """
    Remove a leading file URI scheme; other strings are returned untouched.

    The root is dropped on purpose: file:///home/u/src/x.cs becomes
    home/u/src/x.cs, so findings compare as repo-relative paths.
    """
    lowered = uri.lower()
    for prefix in _FILE_SCHEME_PREFIXES:
        if lowered.startswith(prefix):
            return unquote(uri[len(prefix):])
    return uri


def normalize_report_path(raw_path: str) -> str:
    """Scheme-free, forward-slash form of a reported file path."""
    path = strip_file_scheme(raw_path.strip())
    return path.replace("\\", "/")
