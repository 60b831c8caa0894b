"""OpenAPI document helpers shared by the link inference pipeline.

Covers $ref handling (internal component references only), JSON pointer
serialization, component-name sanitizing, and response status parsing.
All functions operate on plain dict/list trees as produced by PyYAML or json.
"""

from __future__ import annotations

import re
from typing import Any, Iterator


class LinkGenerationError(Exception):
    """Raised when a document cannot be processed by the link generator."""


class UnresolvedReferenceError(LinkGenerationError):
    """Raised when an internal $ref does not point at an existing component."""


# Characters allowed in OpenAPI component keys: ^[a-zA-Z0-9\.\-_]+$
_INVALID_COMPONENT_CHARS = re.compile(r"[^A-Za-z0-9._-]")

# Leading integer of a response key, e.g. "200", " 201", "2XX" (-> 2)
_LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")


def is_reference(obj: Any) -> bool:
    """Return True if obj is a Reference Object."""
    return isinstance(obj, dict) and "$ref" in obj


def is_external_ref(obj: Any) -> bool:
    """Return True if obj is a Reference Object pointing outside the document."""
    if not is_reference(obj):
        return False
    ref = obj["$ref"]
    return not (isinstance(ref, str) and ref.startswith("#"))


def unescape_json_pointer_segment(segment: str) -> str:
    """Decode a single RFC 6901 reference token (~1 -> /, ~0 -> ~)."""
    return segment.replace("~1", "/").replace("~0", "~")


def escape_json_pointer_segment(segment: str) -> str:
    """Encode a single RFC 6901 reference token (~ -> ~0, / -> ~1)."""
    return segment.replace("~", "~0").replace("/", "~1")


def serialize_json_pointer(segments: list[str]) -> str:
    """Join segments into a JSON pointer, e.g. ['paths', '/a', 'get'] -> /paths/~1a/get.

    Prepend '#' to use the result as a URI fragment.
    """
    return "".join("/" + escape_json_pointer_segment(str(s)) for s in segments)


def resolve_component_ref(
    document: dict[str, Any], obj: dict[str, Any], category: str
) -> dict[str, Any]:
    """Resolve a reference to a component of the given category.

    Only references of the form '#/components/<category>/<name>' are
    accepted. A component that is itself a reference is followed until a
    concrete object is reached.

    Args:
        document: The OpenAPI document.
        obj: Reference Object ({"$ref": "..."}).
        category: Component category ('parameters', 'schemas', 'responses', ...).

    Returns:
        The referenced component object (the same object held by the document).

    Raises:
        UnresolvedReferenceError: If the reference is external, targets another
            category, does not exist, or is circular.
    """
    visited: set[str] = set()
    current = obj
    while is_reference(current):
        ref = current["$ref"]
        if is_external_ref(current):
            raise UnresolvedReferenceError(f"Cannot resolve external reference: {ref}")
        if ref in visited:
            raise UnresolvedReferenceError(f"Circular reference: {ref}")
        visited.add(ref)

        prefix = f"#/components/{category}/"
        if not ref.startswith(prefix):
            raise UnresolvedReferenceError(
                f"Reference '{ref}' does not point into components/{category}"
            )
        name = unescape_json_pointer_segment(ref[len(prefix):])

        components = document.get("components")
        section = components.get(category) if isinstance(components, dict) else None
        if not isinstance(section, dict) or name not in section:
            raise UnresolvedReferenceError(f"Reference target not found: {ref}")
        current = section[name]

    if not isinstance(current, dict):
        raise UnresolvedReferenceError(
            f"Reference '{obj['$ref']}' does not resolve to an object"
        )
    return current


def sanitize_component_name(raw: str) -> str:
    """Strip characters not allowed in component keys, e.g. '{item_id}' -> 'item_id'."""
    return _INVALID_COMPONENT_CHARS.sub("", raw)


def capitalize_first_letter(value: str) -> str:
    """Upper-case the first character only ('itemId' -> 'ItemId', unlike str.capitalize)."""
    return value[:1].upper() + value[1:]


def parse_status_code(key: Any) -> int | None:
    """Parse a response key the way an integer parser would.

    OpenAPI status codes can be int (200) or str ("200", "2XX", "default").
    Leading digits are parsed and the rest ignored, so "2XX" yields 2.
    Returns None when the key has no leading integer.
    """
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    match = _LEADING_INT_PATTERN.match(str(key))
    if match is None:
        return None
    return int(match.group(1))


def is_success_status(key: Any) -> bool:
    """Return True if the response key is an HTTP status code in [200, 300)."""
    code = parse_status_code(key)
    return code is not None and 200 <= code < 300


def success_responses(operation: dict[str, Any]) -> Iterator[tuple[Any, Any]]:
    """Yield (status_key, response) pairs for 2xx responses in declaration order."""
    responses = operation.get("responses")
    if not isinstance(responses, dict):
        return
    for status_key, response in responses.items():
        if is_success_status(status_key):
            yield status_key, response


def has_success_response(operation: Any) -> bool:
    """Return True if operation declares at least one 2xx response."""
    if not isinstance(operation, dict):
        return False
    return any(True for _ in success_responses(operation))
