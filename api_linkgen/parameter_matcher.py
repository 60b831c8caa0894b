"""Parameter Matcher - validates candidate pairs by parameter compatibility.

Heuristic: parameters with the same name and the same schema mean the same
thing across operations. A candidate (from, to) becomes a link when every
required parameter of the target operation(s) can be filled from a
parameter of the 'from' GET request. Rejected candidates are dropped
silently (DEBUG log only).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from api_linkgen.models import GeneratorConfig, HttpMethod
from api_linkgen.openapi_tools import (
    LinkGenerationError,
    is_external_ref,
    is_reference,
    resolve_component_ref,
)
from api_linkgen.pair_finder import CandidatePair

logger = logging.getLogger(__name__)


# (declared methods required, methods linked), checked in priority order.
# post+delete without get falls into the post case; get+delete into the get case.
_METHOD_CASES: list[tuple[frozenset[HttpMethod], tuple[HttpMethod, ...]]] = [
    (
        frozenset({HttpMethod.GET, HttpMethod.POST, HttpMethod.DELETE}),
        (HttpMethod.GET, HttpMethod.POST, HttpMethod.DELETE),
    ),
    (frozenset({HttpMethod.GET, HttpMethod.POST}), (HttpMethod.GET, HttpMethod.POST)),
    (frozenset({HttpMethod.GET}), (HttpMethod.GET,)),
    (frozenset({HttpMethod.POST}), (HttpMethod.POST,)),
    (frozenset({HttpMethod.DELETE}), (HttpMethod.DELETE,)),
]


@dataclass
class ValidatedLink:
    """A candidate pair whose target parameters are satisfiable.

    parameter_map holds (source_param, target_param) pairs. Both elements are
    the parameter dicts of the working document, so identity is preserved.
    """

    from_path: str
    to_path: str
    methods: tuple[HttpMethod, ...]
    # Names get a GET/POST/DELETE suffix when the target exposes several methods
    method_suffix: bool
    parameter_map: list[tuple[dict[str, Any], dict[str, Any]]] = field(default_factory=list)


def classify_target_methods(path_item: dict[str, Any]) -> tuple[HttpMethod, ...]:
    """Return the methods a link to this path item targets (empty if none)."""
    declared = {method for method in HttpMethod if method.value in path_item}
    for required, methods in _METHOD_CASES:
        if required <= declared:
            return methods
    return ()


def is_required(parameter: dict[str, Any]) -> bool:
    """Path parameters are always required; others only when required is set."""
    if parameter.get("in") == "path":
        return True
    return parameter.get("required") not in (None, False)


def schemas_match(document: dict[str, Any], first: Any, second: Any) -> bool:
    """Check if two schema objects (or references) describe the same schema.

    Two references match iff their URIs are equal. A single external
    reference never matches. Otherwise internal references are resolved and
    the schemas compared structurally.
    """
    if first is None and second is None:
        return True
    if first is None or second is None:
        return False

    if is_reference(first) and is_reference(second):
        return first["$ref"] == second["$ref"]

    if is_external_ref(first) or is_external_ref(second):
        return False

    if is_reference(first):
        first = resolve_component_ref(document, first, "schemas")
    if is_reference(second):
        second = resolve_component_ref(document, second, "schemas")
    return first == second


def parameters_match(
    document: dict[str, Any], first: dict[str, Any], second: dict[str, Any]
) -> bool:
    """Parameters match when names are equal and schemas match."""
    if first.get("name") != second.get("name"):
        return False
    return schemas_match(document, first.get("schema"), second.get("schema"))


def parameter_list(container: dict[str, Any], where: str) -> list[Any]:
    """Return the raw 'parameters' list of an operation or path item."""
    parameters = container.get("parameters")
    if parameters is None:
        return []
    if not isinstance(parameters, list):
        raise LinkGenerationError(f"'parameters' of {where} must be a list")
    return parameters


def dereference_parameters(document: dict[str, Any], parameters: list[Any]) -> list[dict[str, Any]]:
    """Resolve every parameter reference. External references must be filtered beforehand."""
    result = []
    for parameter in parameters:
        if is_reference(parameter):
            parameter = resolve_component_ref(document, parameter, "parameters")
        if not isinstance(parameter, dict):
            raise LinkGenerationError(f"Parameter must be an object, got {parameter!r}")
        if not isinstance(parameter.get("name"), str) or not isinstance(parameter.get("in"), str):
            raise LinkGenerationError(f"Parameter requires string 'name' and 'in': {parameter!r}")
        result.append(parameter)
    return result


class ParameterMatcher:
    """Validates candidate pairs against a document.

    Usage:
        matcher = ParameterMatcher(document)
        links = matcher.match_all(find_candidate_pairs(document))
    """

    def __init__(self, document: dict[str, Any], config: GeneratorConfig | None = None) -> None:
        """Initialize the matcher.

        Args:
            document: The OpenAPI document (the working copy).
            config: Generator configuration; limits the linkable target methods.
        """
        self._document = document
        self._config = config or GeneratorConfig()

    def match_all(self, pairs: list[CandidatePair]) -> list[ValidatedLink]:
        """Validate every candidate, keeping the accepted ones in order."""
        logger.debug("Processing potential link candidates")
        links = []
        for pair in pairs:
            link = self.match(pair)
            if link is not None:
                links.append(link)
        logger.debug("Found %d valid link candidates", len(links))
        return links

    def match(self, pair: CandidatePair) -> ValidatedLink | None:
        """Validate one candidate pair.

        Returns:
            The ValidatedLink with its parameter correspondence, or None if the
            pair is rejected.
        """
        paths = self._document["paths"]
        from_item = paths[pair.from_path]
        to_item = paths[pair.to_path]

        case_methods = classify_target_methods(to_item)
        methods = tuple(m for m in case_methods if m in self._config.target_methods)
        if not methods:
            logger.debug(
                "  Dropping link candidate without linkable target method: '%s' => '%s'",
                pair.from_path, pair.to_path,
            )
            return None

        to_operations = [
            self._operation(to_item, method, pair.to_path) for method in methods
        ]
        raw_to_params = [
            param
            for operation, method in zip(to_operations, methods)
            for param in parameter_list(operation, f"{method.value} {pair.to_path}")
        ]
        raw_to_path_params = parameter_list(to_item, pair.to_path)
        if any(is_external_ref(p) for p in raw_to_params + raw_to_path_params):
            logger.debug(
                "  Dropping link candidate due to external parameter reference: '%s' => '%s'",
                pair.from_path, pair.to_path,
            )
            return None

        # External references of the source are ignored rather than rejected.
        from_get = self._operation(from_item, HttpMethod.GET, pair.from_path)
        from_params = self._merge_parameters(
            [p for p in parameter_list(from_get, f"get {pair.from_path}") if not is_external_ref(p)],
            [p for p in parameter_list(from_item, pair.from_path) if not is_external_ref(p)],
        )
        to_params = self._merge_parameters(raw_to_params, raw_to_path_params)

        # Cookies are assumed to be conveyed automatically by the client
        from_params = [p for p in from_params if p.get("in") != "cookie"]
        to_params = [p for p in to_params if p.get("in") != "cookie"]

        parameter_map: list[tuple[dict[str, Any], dict[str, Any]]] = []
        for to_param in to_params:
            from_param = next(
                (p for p in from_params if parameters_match(self._document, to_param, p)),
                None,
            )
            if from_param is not None:
                parameter_map.append((from_param, to_param))
            elif is_required(to_param):
                logger.debug(
                    "  Dropping link candidate, required parameter '%s' has no source: '%s' => '%s'",
                    to_param.get("name"), pair.from_path, pair.to_path,
                )
                return None

        logger.debug(
            "  Valid link candidate found: '%s' => '%s', %d parameter(s)",
            pair.from_path, pair.to_path, len(parameter_map),
        )
        return ValidatedLink(
            from_path=pair.from_path,
            to_path=pair.to_path,
            methods=methods,
            method_suffix=len(case_methods) > 1,
            parameter_map=parameter_map,
        )

    def _merge_parameters(
        self, operation_params: list[Any], path_params: list[Any]
    ) -> list[dict[str, Any]]:
        """Dereference and combine parameters; operation-level wins on name collision."""
        merged = dereference_parameters(self._document, operation_params)
        names = {p.get("name") for p in merged}
        for param in dereference_parameters(self._document, path_params):
            if param.get("name") not in names:
                merged.append(param)
        return merged

    @staticmethod
    def _operation(path_item: dict[str, Any], method: HttpMethod, path: str) -> dict[str, Any]:
        operation = path_item[method.value]
        if not isinstance(operation, dict):
            raise LinkGenerationError(f"Operation '{method.value} {path}' must be an object")
        return operation
