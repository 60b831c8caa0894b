"""Link Generator - adds inferred link definitions to an OpenAPI v3 document.

A link from path p1 to path p2 is added when:
- p2 is nested below p1 (p1=/items, p2=/items/{id}, but not p2=/itemsX)
- p1 has a GET with a 2xx response and p2 a GET, POST or DELETE with a 2xx response
- every required parameter of p2's target operation(s) has a parameter of
  p1's GET with the same name and schema

The input document is never modified; links are added to a deep copy.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any

from api_linkgen.link_synthesizer import LinkSynthesizer
from api_linkgen.models import AddedLink, GeneratorConfig
from api_linkgen.openapi_tools import LinkGenerationError
from api_linkgen.pair_finder import find_candidate_pairs
from api_linkgen.parameter_matcher import ParameterMatcher

logger = logging.getLogger(__name__)


@dataclass
class LinkGenerationResult:
    """Output of add_link_definitions."""

    document: dict[str, Any]
    links_added: int
    links: list[AddedLink] = field(default_factory=list)


def validate_document_shape(document: Any) -> None:
    """Fail fast on documents the pipeline cannot walk.

    Raises:
        LinkGenerationError: If document or its paths are not mappings.
    """
    if not isinstance(document, dict):
        raise LinkGenerationError("OpenAPI document must be a mapping")
    paths = document.get("paths")
    if paths is None:
        raise LinkGenerationError("OpenAPI document has no 'paths'")
    if not isinstance(paths, dict):
        raise LinkGenerationError("'paths' must be a mapping of path items")
    for path, path_item in paths.items():
        if not isinstance(path, str):
            raise LinkGenerationError(f"Path key must be a string, got {path!r}")
        if not isinstance(path_item, dict):
            raise LinkGenerationError(f"Path item '{path}' must be a mapping")


def add_link_definitions(
    document: dict[str, Any], config: GeneratorConfig | None = None
) -> LinkGenerationResult:
    """Add link definitions to an OpenAPI document based on a heuristic.

    Args:
        document: The OpenAPI v3 document. Not modified.
        config: Optional generator configuration.

    Returns:
        LinkGenerationResult with the new document and the number of link
        entries added (a $ref inserted into several responses counts once
        per response).

    Raises:
        LinkGenerationError: If the document is malformed or contains an
            unresolvable internal reference. The input stays untouched.
    """
    validate_document_shape(document)
    config = config or GeneratorConfig()
    working = copy.deepcopy(document)

    pairs = find_candidate_pairs(working)
    links = ParameterMatcher(working, config).match_all(pairs)

    synthesizer = LinkSynthesizer(working, config)
    links_added = synthesizer.add_all(links)

    logger.info("Added %d links to response definitions", links_added)
    return LinkGenerationResult(
        document=working,
        links_added=links_added,
        links=synthesizer.added,
    )
