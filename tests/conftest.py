"""Pytest configuration and shared helpers for api-linkgen tests.

This file provides document builders so tests only spell out the parts of an
OpenAPI document they actually vary.
"""

from __future__ import annotations

from typing import Any

import pytest


def make_param(
    name: str,
    location: str = "query",
    required: bool | None = None,
    schema: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Create a Parameter Object. Omits 'required'/'schema' when None."""
    param: dict[str, Any] = {"name": name, "in": location}
    if required is not None:
        param["required"] = required
    if schema is not None:
        param["schema"] = schema
    return param


def make_operation(
    parameters: list[dict[str, Any]] | None = None,
    operation_id: str | None = None,
    status_codes: tuple[Any, ...] = ("200",),
) -> dict[str, Any]:
    """Create an Operation Object with a response per status code.

    Prefer this over literal dicts - it documents which fields are typically
    varied in tests.
    """
    operation: dict[str, Any] = {
        "responses": {code: {"description": "OK"} for code in status_codes},
    }
    if parameters is not None:
        operation["parameters"] = parameters
    if operation_id is not None:
        operation["operationId"] = operation_id
    return operation


def make_spec(
    paths: dict[str, dict[str, Any]], components: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Wrap path items into a minimal OpenAPI 3 document."""
    spec: dict[str, Any] = {
        "openapi": "3.0.3",
        "info": {"title": "Test", "version": "1.0"},
        "paths": paths,
    }
    if components is not None:
        spec["components"] = components
    return spec


INT_SCHEMA = {"type": "integer"}


@pytest.fixture
def items_spec() -> dict[str, Any]:
    """GET /items and GET /items/{id}, both with an integer id."""
    return make_spec({
        "/items": {
            "get": make_operation(
                parameters=[make_param("id", "query", required=True, schema=INT_SCHEMA)],
                operation_id="listItems",
            ),
        },
        "/items/{id}": {
            "get": make_operation(
                parameters=[make_param("id", "path", required=True, schema=INT_SCHEMA)],
                operation_id="getItem",
            ),
        },
    })
