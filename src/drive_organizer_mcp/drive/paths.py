"""Helpers for absolute, ``/``-delimited Drive paths.

The synthetic root ``/`` stands for "My Drive". Paths are always absolute,
never carry a trailing slash (except the root itself) and never contain
empty segments.
"""

ROOT_PATH = "/"
ROOT_ID = "root"


def normalize_path(path: str | None) -> str:
    """Return the canonical form of ``path``.

    >>> normalize_path("Documents//Reports/")
    '/Documents/Reports'
    """
    if not path:
        return ROOT_PATH
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return ROOT_PATH
    return "/" + "/".join(segments)


def split_path(path: str | None) -> list[str]:
    """Split a path into its non-empty segments."""
    return [segment for segment in normalize_path(path).split("/") if segment]


def join_path(*segments: str) -> str:
    """Join segments (which may themselves be paths) into a normalized path."""
    return normalize_path("/".join(segment for segment in segments if segment))


def parent_path(path: str | None) -> str:
    """Directory portion of ``path``; the root is its own parent."""
    normalized = normalize_path(path)
    if normalized == ROOT_PATH:
        return ROOT_PATH
    head = normalized.rsplit("/", 1)[0]
    return head or ROOT_PATH


def name_from_path(path: str | None) -> str:
    """Last segment of ``path`` (empty for the root)."""
    normalized = normalize_path(path)
    if normalized == ROOT_PATH:
        return ""
    return normalized.rsplit("/", 1)[1]


def is_root(path: str | None) -> bool:
    return normalize_path(path) == ROOT_PATH


def folder_depth(path: str) -> int:
    """Number of segments minus one (``/a`` is depth 0, ``/a/b`` depth 1)."""
    return len(split_path(path)) - 1
