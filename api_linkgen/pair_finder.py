"""Pair Finder - discovers candidate (from, to) path pairs for links.

A pair qualifies when the 'from' path has a GET with a 2xx response and the
'to' path is nested below it and has a GET, POST or DELETE with a 2xx
response. Candidates are only hints; the Parameter Matcher validates them.

The get scan skips targets already taken by the post or the delete scan.
Earlier link generators only skipped post targets there, which emitted a
target declaring both GET and DELETE twice and doubled its links. Keep the
delete exclusion: each (from, to) pair must be emitted exactly once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from api_linkgen.models import HttpMethod
from api_linkgen.openapi_tools import has_success_response

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidatePair:
    """A directional hint that to_path may be reachable after from_path."""

    from_path: str
    to_path: str


def qualifying_paths(paths: dict[str, Any], method: HttpMethod) -> list[str]:
    """Return paths whose operation for method declares a 2xx response, in document order."""
    return [
        path
        for path, path_item in paths.items()
        if has_success_response(path_item.get(method.value))
    ]


def is_nested_path(from_path: str, to_path: str) -> bool:
    """Return True if to_path extends from_path ('/a' -> '/a/b', or '/a/' -> '/a/b')."""
    if from_path == to_path:
        return False
    if to_path.startswith(from_path + "/"):
        return True
    return from_path.endswith("/") and to_path.startswith(from_path)


def find_candidate_pairs(document: dict[str, Any]) -> list[CandidatePair]:
    """Find path pairs where a link may potentially be added.

    For each GET path (document order), targets are scanned post paths
    first, then delete paths, then get paths. A target with a qualifying
    POST is only reached through the post scan, and one with a qualifying
    DELETE (but no POST) only through the delete scan, so each (from, to)
    appears at most once.

    Args:
        document: The OpenAPI document (paths must be a mapping of mappings).

    Returns:
        Candidate pairs in discovery order.
    """
    paths = document["paths"]
    get_paths = qualifying_paths(paths, HttpMethod.GET)
    post_paths = qualifying_paths(paths, HttpMethod.POST)
    delete_paths = qualifying_paths(paths, HttpMethod.DELETE)
    post_path_set = set(post_paths)
    delete_path_set = set(delete_paths)

    # Order matters: each scan only takes targets no earlier scan claimed.
    target_scans = [
        post_paths,
        [p for p in delete_paths if p not in post_path_set],
        [p for p in get_paths if p not in post_path_set and p not in delete_path_set],
    ]

    result: list[CandidatePair] = []
    for from_path in get_paths:
        for targets in target_scans:
            for to_path in targets:
                if is_nested_path(from_path, to_path):
                    result.append(CandidatePair(from_path=from_path, to_path=to_path))

    logger.debug("Found %d potential link candidates", len(result))
    return result
