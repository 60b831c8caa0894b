"""Link Synthesizer - writes Link Objects for validated links into the document.

For a single 2xx response on the source GET, links are placed inline under
that response. With several distinct 2xx responses, each Link Object is
stored once under components.links and every response gets a $ref to it.
Existing names are never overwritten: a '1' is appended until unique.
"""

from __future__ import annotations

import logging
from typing import Any

from api_linkgen.models import AddedLink, GeneratorConfig, HttpMethod, LinkObject
from api_linkgen.openapi_tools import (
    LinkGenerationError,
    capitalize_first_letter,
    is_external_ref,
    is_reference,
    resolve_component_ref,
    sanitize_component_name,
    serialize_json_pointer,
    success_responses,
)
from api_linkgen.parameter_matcher import ValidatedLink

logger = logging.getLogger(__name__)


def unique_name(name: str, existing: dict[str, Any]) -> str:
    """Append '1' to name until it is not a key of existing."""
    while name in existing:
        name += "1"
    return name


def link_base_name(to_path: str) -> str:
    """Derive the link name stem from a target path.

    '/items/{item_id}' -> 'itemsItem_id', '/items/{item_id}/' -> 'itemsItem_id'.
    The first segment is sanitized as well, so '/{tenant}/x' -> 'tenantX'
    and every name stays a valid components.links key.
    """
    parts = to_path.split("/")
    prefix = parts[1] if len(parts) > 1 else ""
    last = parts[-2] if to_path.endswith("/") and len(parts) > 1 else parts[-1]
    return sanitize_component_name(prefix) + capitalize_first_letter(sanitize_component_name(last))


def runtime_expression(parameter: dict[str, Any]) -> str:
    """Runtime expression reading a request parameter, e.g. $request.path.id."""
    return f"$request.{parameter['in']}.{parameter['name']}"


def _links_map(container: dict[str, Any], where: str) -> dict[str, Any]:
    if container.get("links") is None:
        container["links"] = {}
    links = container["links"]
    if not isinstance(links, dict):
        raise LinkGenerationError(f"'links' of {where} must be an object")
    return links


class LinkSynthesizer:
    """Adds Link Objects for validated links to a document, in place.

    The document must be the caller's private working copy.
    """

    def __init__(self, document: dict[str, Any], config: GeneratorConfig | None = None) -> None:
        self._document = document
        self._config = config or GeneratorConfig()
        self._added: list[AddedLink] = []

    @property
    def added(self) -> list[AddedLink]:
        """Records of every link entry inserted so far."""
        return list(self._added)

    def add_all(self, links: list[ValidatedLink]) -> int:
        """Insert links for every validated link. Returns the number of entries added."""
        before = len(self._added)
        for link in links:
            self.add(link)
        return len(self._added) - before

    def add(self, link: ValidatedLink) -> int:
        """Insert the Link Objects for one validated link.

        Returns:
            Number of link entries added to responses (a $ref per response
            counts once).
        """
        before = len(self._added)
        responses = self._success_responses(link.from_path)
        if not responses:
            return 0

        parameters = {
            to_param["name"]: runtime_expression(from_param)
            for from_param, to_param in link.parameter_map
        }
        base_name = link_base_name(link.to_path)

        for method in link.methods:
            name = base_name + method.value.upper() if link.method_suffix else base_name
            link_object = self._build_link_object(link.to_path, method, parameters)

            if len(responses) == 1:
                status_key, response = responses[0]
                links = _links_map(response, f"response {status_key} of GET {link.from_path}")
                entry_name = unique_name(name, links)
                links[entry_name] = link_object
                self._record(entry_name, link, method, status_key, None)
            else:
                component_name = self._store_component(name, link_object)
                ref = "#" + serialize_json_pointer(["components", "links", component_name])
                for status_key, response in responses:
                    links = _links_map(response, f"response {status_key} of GET {link.from_path}")
                    entry_name = unique_name(name, links)
                    links[entry_name] = {"$ref": ref}
                    self._record(entry_name, link, method, status_key, component_name)

        return len(self._added) - before

    def _success_responses(self, from_path: str) -> list[tuple[Any, dict[str, Any]]]:
        """Resolved 2xx responses of the source GET, deduplicated by identity.

        Responses held in other documents cannot receive links and are skipped.
        """
        from_get = self._document["paths"][from_path]["get"]
        result: list[tuple[Any, dict[str, Any]]] = []
        seen: set[int] = set()
        for status_key, response in success_responses(from_get):
            if is_external_ref(response):
                logger.debug(
                    "  Skipping external response %s of GET %s: %s",
                    status_key, from_path, response["$ref"],
                )
                continue
            if is_reference(response):
                response = resolve_component_ref(self._document, response, "responses")
            if not isinstance(response, dict):
                raise LinkGenerationError(
                    f"Response {status_key} of GET {from_path} must be an object"
                )
            if id(response) in seen:
                continue
            seen.add(id(response))
            result.append((status_key, response))
        return result

    def _build_link_object(
        self, to_path: str, method: HttpMethod, parameters: dict[str, str]
    ) -> dict[str, Any]:
        operation = self._document["paths"][to_path][method.value]
        operation_id = operation.get("operationId")
        if operation_id is not None and not isinstance(operation_id, str):
            raise LinkGenerationError(
                f"operationId of '{method.value} {to_path}' must be a string"
            )
        if operation_id is not None:
            link_object = LinkObject(
                description=self._config.description,
                operation_id=operation_id,
                parameters=dict(parameters),
            )
        else:
            link_object = LinkObject(
                description=self._config.description,
                operation_ref="#" + serialize_json_pointer(["paths", to_path, method.value]),
                parameters=dict(parameters),
            )
        return link_object.to_openapi()

    def _store_component(self, name: str, link_object: dict[str, Any]) -> str:
        """Store link_object under components.links and return its unique name."""
        if self._document.get("components") is None:
            self._document["components"] = {}
        components = self._document["components"]
        if not isinstance(components, dict):
            raise LinkGenerationError("'components' must be an object")
        if components.get("links") is None:
            components["links"] = {}
        component_links = components["links"]
        if not isinstance(component_links, dict):
            raise LinkGenerationError("'components.links' must be an object")
        component_name = unique_name(name, component_links)
        component_links[component_name] = link_object
        return component_name

    def _record(
        self,
        name: str,
        link: ValidatedLink,
        method: HttpMethod,
        status_key: Any,
        component: str | None,
    ) -> None:
        self._added.append(AddedLink(
            name=name,
            from_path=link.from_path,
            to_path=link.to_path,
            method=method,
            status_code=str(status_key),
            component=component,
        ))
        logger.debug(
            "  Added link '%s' to response %s of GET %s -> %s %s",
            name, status_key, link.from_path, method.value.upper(), link.to_path,
        )
