"""Path model shared by sync, purge, upload and folder creation.

Object keys are flat strings that use ``/`` as a delimiter by convention.
A key ending in ``/`` is a folder marker (a zero-byte placeholder for an
empty folder); any other key is a file, and every segment before its last
one is an implied folder.

Folder paths are always written with a trailing slash: ``"a/b/"``. The root
folder has the empty path ``""``. These functions are pure so every caller
derives paths identically.
"""

from typing import Dict, List, Optional, Protocol, Sequence, Set, Tuple

# Recommended cap on parent-link walks.
DEFAULT_MAX_DEPTH = 20

_RESERVED_NAMES = frozenset({".", ".."})


class FolderLike(Protocol):
    name: str
    parent_id: Optional[str]


def is_folder_marker(key: str) -> bool:
    return key.endswith("/")


def segments_of(key: str) -> List[str]:
    """Split a key into its non-empty path segments.

    >>> segments_of("a/b/c")
    ['a', 'b', 'c']
    >>> segments_of("a/b/")
    ['a', 'b']
    """
    return [part for part in key.split("/") if part]


def path_of(segments: Sequence[str]) -> str:
    """Inverse of ``segments_of`` for folders: ``["a", "b"] -> "a/b/"``."""
    if not segments:
        return ""
    return "/".join(segments) + "/"


def ancestor_paths_of(key: str) -> Set[str]:
    """Every folder path implied by *key*, each ending in ``/``.

    For a file key these are the proper prefixes: ``"a/b/c" -> {"a/", "a/b/"}``.
    For a folder marker the chain ends at the folder itself:
    ``"a/b/" -> {"a/", "a/b/"}``.
    """
    segments = segments_of(key)
    limit = len(segments) if is_folder_marker(key) else len(segments) - 1
    return {path_of(segments[:i]) for i in range(1, limit + 1)}


def split_key(key: str) -> Tuple[List[str], str]:
    """Split a file key into ``(parent segments, filename)``."""
    segments = segments_of(key)
    if not segments:
        raise ValueError(f"Key has no file name: {key!r}")
    return segments[:-1], segments[-1]


def storage_key_for(folder_path: str, filename: str) -> str:
    """Key of *filename* inside the folder at *folder_path* (``""`` = root)."""
    return f"{folder_path}{filename}"


def full_path_of(
    folder_id: str,
    folders_by_id: Dict[str, FolderLike],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Optional[str]:
    """Canonical path of a folder, derived by walking ``parent_id`` links.

    Returns ``None`` when the chain cannot be resolved: an ancestor is
    missing from *folders_by_id*, the links form a cycle, or the chain is
    deeper than *max_depth*.
    """
    names: List[str] = []
    seen: Set[str] = set()
    current: Optional[str] = folder_id

    while current is not None:
        if current in seen or len(names) >= max_depth:
            return None
        seen.add(current)

        folder = folders_by_id.get(current)
        if folder is None:
            return None
        names.append(folder.name)
        current = folder.parent_id

    names.reverse()
    return path_of(names)


def is_valid_name(name: str) -> bool:
    """A folder or file name is one non-empty segment."""
    return bool(name) and "/" not in name and name.strip() == name and name not in _RESERVED_NAMES


def normalize_folder_path(raw: Optional[str]) -> str:
    """Canonicalise a user-supplied folder path.

    ``"/a//b"`` and ``"a/b/"`` both become ``"a/b/"``; empty input is root.

    Raises:
        ValueError: If a segment is ``.`` or ``..``.
    """
    segments = segments_of((raw or "").strip())
    for segment in segments:
        if segment in _RESERVED_NAMES:
            raise ValueError(f"Invalid path segment: {segment!r}")
    return path_of(segments)
