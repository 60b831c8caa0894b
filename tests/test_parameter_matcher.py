"""Tests for parameter_matcher module.

Tests cover:
- Target method classification (five cases, priority order)
- Schema and parameter matching heuristics
- Candidate validation: required vs optional, cookies, path-level
  parameters, external references
"""

import pytest

from api_linkgen.models import GeneratorConfig, HttpMethod
from api_linkgen.openapi_tools import LinkGenerationError, UnresolvedReferenceError
from api_linkgen.pair_finder import CandidatePair
from api_linkgen.parameter_matcher import (
    ParameterMatcher,
    classify_target_methods,
    is_required,
    parameters_match,
    schemas_match,
)
from tests.conftest import INT_SCHEMA, make_operation, make_param, make_spec

GET, POST, DELETE = HttpMethod.GET, HttpMethod.POST, HttpMethod.DELETE

PAIR = CandidatePair("/items", "/items/{id}")


def match(spec, pair=PAIR, config=None):
    return ParameterMatcher(spec, config).match(pair)


def mapped_names(link):
    return [(src["in"], src["name"], dst["name"]) for src, dst in link.parameter_map]


class TestClassifyTargetMethods:
    @pytest.mark.parametrize(
        "declared,expected",
        [
            (("get", "post", "delete"), (GET, POST, DELETE)),
            (("get", "post"), (GET, POST)),
            (("get",), (GET,)),
            (("get", "delete"), (GET,)),
            (("post",), (POST,)),
            (("post", "delete"), (POST,)),
            (("delete",), (DELETE,)),
            (("put", "patch"), ()),
        ],
    )
    def test_cases(self, declared, expected):
        """Test every method combination maps to its case."""
        path_item = {method: make_operation() for method in declared}
        assert classify_target_methods(path_item) == expected

    def test_ignores_non_method_keys(self):
        """Test path-level parameters and summaries do not count."""
        path_item = {"parameters": [], "summary": "x", "get": make_operation()}
        assert classify_target_methods(path_item) == (GET,)


class TestIsRequired:
    def test_explicit_required(self):
        """Test required: true is required."""
        assert is_required(make_param("q", required=True))

    def test_absent_or_false(self):
        """Test missing or false required is optional."""
        assert not is_required(make_param("q"))
        assert not is_required(make_param("q", required=False))

    def test_path_parameters_always_required(self):
        """Test path parameters are required even without the flag."""
        assert is_required(make_param("id", "path"))


class TestSchemasMatch:
    def test_both_missing(self):
        """Test two parameters without schema match."""
        assert schemas_match({}, None, None)

    def test_one_missing(self):
        """Test a schema never matches a missing schema."""
        assert not schemas_match({}, INT_SCHEMA, None)
        assert not schemas_match({}, None, INT_SCHEMA)

    def test_equal_inline(self):
        """Test structurally equal inline schemas match."""
        assert schemas_match({}, {"type": "integer"}, {"type": "integer"})

    def test_different_inline(self):
        """Test different inline schemas do not match."""
        assert not schemas_match({}, {"type": "integer"}, {"type": "string"})
        assert not schemas_match(
            {}, {"type": "integer"}, {"type": "integer", "format": "int64"}
        )

    def test_two_references_compare_uris(self):
        """Test references match iff their URIs are identical, even external ones."""
        assert schemas_match({}, {"$ref": "ext.yaml#/Id"}, {"$ref": "ext.yaml#/Id"})
        assert not schemas_match(
            {}, {"$ref": "#/components/schemas/A"}, {"$ref": "#/components/schemas/B"}
        )

    def test_external_reference_never_matches_inline(self):
        """Test a single external reference never matches."""
        assert not schemas_match({}, {"$ref": "ext.yaml#/Id"}, INT_SCHEMA)
        assert not schemas_match({}, INT_SCHEMA, {"$ref": "ext.yaml#/Id"})

    def test_internal_reference_resolved(self):
        """Test an internal reference matches an equal inline schema."""
        doc = {"components": {"schemas": {"Id": {"type": "integer"}}}}
        assert schemas_match(doc, {"$ref": "#/components/schemas/Id"}, {"type": "integer"})
        assert not schemas_match(doc, {"type": "string"}, {"$ref": "#/components/schemas/Id"})

    def test_unresolvable_internal_reference_raises(self):
        """Test dangling internal references fail fast."""
        with pytest.raises(UnresolvedReferenceError):
            schemas_match({}, {"$ref": "#/components/schemas/Nope"}, INT_SCHEMA)


class TestParametersMatch:
    def test_same_name_and_schema(self):
        """Test name and schema equality is a match regardless of location."""
        first = make_param("id", "query", schema=INT_SCHEMA)
        second = make_param("id", "path", required=True, schema=INT_SCHEMA)
        assert parameters_match({}, first, second)

    def test_different_name(self):
        """Test different names never match."""
        assert not parameters_match({}, make_param("id"), make_param("uid"))

    def test_different_schema(self):
        """Test same name with different schema does not match."""
        first = make_param("id", schema={"type": "string"})
        second = make_param("id", schema=INT_SCHEMA)
        assert not parameters_match({}, first, second)


class TestParameterMatcher:
    def test_query_to_path_match(self, items_spec):
        """Test a query parameter feeds a path parameter of the same name."""
        link = match(items_spec)
        assert link is not None
        assert link.methods == (GET,)
        assert not link.method_suffix
        assert mapped_names(link) == [("query", "id", "id")]

    def test_parameter_map_keeps_identity(self, items_spec):
        """Test map entries are the document's own parameter objects."""
        link = match(items_spec)
        source, target = link.parameter_map[0]
        assert source is items_spec["paths"]["/items"]["get"]["parameters"][0]
        assert target is items_spec["paths"]["/items/{id}"]["get"]["parameters"][0]

    def test_missing_required_parameter_rejects(self):
        """Test a required target parameter absent from the source rejects the pair."""
        spec = make_spec({
            "/items": {"get": make_operation()},
            "/items/{id}": {
                "get": make_operation(parameters=[make_param("token", "query", required=True)]),
            },
        })
        assert match(spec) is None

    def test_missing_optional_parameter_is_fine(self):
        """Test optional target parameters may stay unmapped."""
        spec = make_spec({
            "/items": {"get": make_operation()},
            "/items/{id}": {
                "get": make_operation(parameters=[make_param("verbose", "query")]),
            },
        })
        link = match(spec)
        assert link is not None
        assert link.parameter_map == []

    def test_optional_parameter_mapped_when_available(self):
        """Test optional target parameters are mapped when the source has them."""
        spec = make_spec({
            "/items": {"get": make_operation(parameters=[make_param("lang", "header")])},
            "/items/{id}": {"get": make_operation(parameters=[make_param("lang", "query")])},
        })
        assert mapped_names(match(spec)) == [("header", "lang", "lang")]

    def test_path_parameter_without_required_flag_is_required(self):
        """Test a path parameter lacking 'required' still needs a source."""
        spec = make_spec({
            "/items": {"get": make_operation()},
            "/items/{id}": {"get": make_operation(parameters=[make_param("id", "path")])},
        })
        assert match(spec) is None

    def test_schema_mismatch_rejects(self):
        """Test a same-named parameter with a different schema does not satisfy."""
        spec = make_spec({
            "/items": {
                "get": make_operation(parameters=[make_param("id", schema={"type": "string"})]),
            },
            "/items/{id}": {
                "get": make_operation(
                    parameters=[make_param("id", "path", required=True, schema=INT_SCHEMA)]
                ),
            },
        })
        assert match(spec) is None

    def test_cookie_parameters_ignored(self):
        """Test required target cookies are not needed and source cookies are not used."""
        spec = make_spec({
            "/items": {
                "get": make_operation(parameters=[make_param("session", "cookie", required=True)]),
            },
            "/items/{id}": {
                "get": make_operation(
                    parameters=[
                        make_param("session", "cookie", required=True),
                        make_param("lang", "query"),
                    ]
                ),
            },
        })
        link = match(spec)
        assert link is not None
        assert link.parameter_map == []

    def test_source_cookie_cannot_satisfy_target(self):
        """Test a source cookie never feeds a same-named target parameter."""
        spec = make_spec({
            "/items": {"get": make_operation(parameters=[make_param("sid", "cookie")])},
            "/items/{id}": {
                "get": make_operation(parameters=[make_param("sid", "query", required=True)]),
            },
        })
        assert match(spec) is None

    def test_path_level_parameters_on_both_sides(self):
        """Test path-item parameters are inherited by the operations."""
        spec = make_spec({
            "/items": {
                "parameters": [make_param("tenant", "header", required=True)],
                "get": make_operation(),
            },
            "/items/{id}": {
                "parameters": [make_param("tenant", "header", required=True)],
                "get": make_operation(),
            },
        })
        assert mapped_names(match(spec)) == [("header", "tenant", "tenant")]

    def test_operation_parameter_overrides_path_level(self):
        """Test an operation parameter shadows a path-level one with the same name."""
        spec = make_spec({
            "/items": {
                "parameters": [make_param("id", "header", schema=INT_SCHEMA)],
                "get": make_operation(parameters=[make_param("id", "query", schema=INT_SCHEMA)]),
            },
            "/items/{id}": {
                "parameters": [make_param("id", "path", required=True, schema=INT_SCHEMA)],
                "get": make_operation(parameters=[make_param("id", "query", schema={"type": "string"})]),
            },
        })
        # Target keeps its optional string query id (path-level id is shadowed)
        link = match(spec)
        assert link is not None
        assert link.parameter_map == []

    def test_parameter_references_resolved(self):
        """Test internal parameter references on both sides are dereferenced."""
        spec = make_spec(
            {
                "/items": {"get": make_operation(parameters=[{"$ref": "#/components/parameters/Id"}])},
                "/items/{id}": {
                    "get": make_operation(parameters=[{"$ref": "#/components/parameters/PathId"}]),
                },
            },
            components={
                "parameters": {
                    "Id": make_param("id", "query", schema={"$ref": "#/components/schemas/Id"}),
                    "PathId": make_param("id", "path", required=True, schema=INT_SCHEMA),
                },
                "schemas": {"Id": {"type": "integer"}},
            },
        )
        assert mapped_names(match(spec)) == [("query", "id", "id")]

    def test_external_target_parameter_rejects(self):
        """Test an external parameter reference on the target rejects the whole pair."""
        spec = make_spec({
            "/items": {"get": make_operation()},
            "/items/{id}": {
                "get": make_operation(parameters=[{"$ref": "common.yaml#/components/parameters/Q"}]),
            },
        })
        assert match(spec) is None

    def test_external_target_path_level_parameter_rejects(self):
        """Test external references in target path-level parameters also reject."""
        spec = make_spec({
            "/items": {"get": make_operation()},
            "/items/{id}": {
                "parameters": [{"$ref": "common.yaml#/Q"}],
                "get": make_operation(),
            },
        })
        assert match(spec) is None

    def test_external_source_parameter_dropped(self):
        """Test external references on the source are ignored, not rejected."""
        spec = make_spec({
            "/items": {
                "parameters": [{"$ref": "common.yaml#/P"}],
                "get": make_operation(
                    parameters=[
                        {"$ref": "common.yaml#/Q"},
                        make_param("id", schema=INT_SCHEMA),
                    ]
                ),
            },
            "/items/{id}": {
                "get": make_operation(
                    parameters=[make_param("id", "path", required=True, schema=INT_SCHEMA)]
                ),
            },
        })
        assert mapped_names(match(spec)) == [("query", "id", "id")]

    def test_union_of_get_and_post_parameters(self):
        """Test a required POST parameter is enforced alongside GET parameters."""
        spec = make_spec({
            "/items": {"get": make_operation(parameters=[make_param("id", schema=INT_SCHEMA)])},
            "/items/{id}": {
                "get": make_operation(parameters=[make_param("id", "path", schema=INT_SCHEMA)]),
                "post": make_operation(parameters=[make_param("token", "header", required=True)]),
            },
        })
        assert match(spec) is None

    def test_union_when_get_has_no_parameters(self):
        """Test POST parameters are considered even when GET declares none."""
        spec = make_spec({
            "/items": {"get": make_operation(parameters=[make_param("token", "header")])},
            "/items/{id}": {
                "get": make_operation(),
                "post": make_operation(parameters=[make_param("token", "header", required=True)]),
            },
        })
        link = match(spec)
        assert link.methods == (GET, POST)
        assert link.method_suffix
        assert mapped_names(link) == [("header", "token", "token")]

    def test_all_three_methods_parameters(self):
        """Test GET, POST and DELETE parameters are all matched."""
        spec = make_spec({
            "/items": {"get": make_operation(parameters=[make_param("id", schema=INT_SCHEMA)])},
            "/items/{id}": {
                "get": make_operation(parameters=[make_param("id", "path", schema=INT_SCHEMA)]),
                "post": make_operation(parameters=[make_param("id", "path", schema=INT_SCHEMA)]),
                "delete": make_operation(parameters=[make_param("id", "path", schema=INT_SCHEMA)]),
            },
        })
        link = match(spec)
        assert link.methods == (GET, POST, DELETE)
        assert len(link.parameter_map) == 3
        assert {dst["name"] for _, dst in link.parameter_map} == {"id"}

    def test_delete_parameters_ignored_in_get_case(self):
        """Test a GET+DELETE target is validated against GET only."""
        spec = make_spec({
            "/items": {"get": make_operation()},
            "/items/{id}": {
                "get": make_operation(),
                "delete": make_operation(parameters=[make_param("force", required=True)]),
            },
        })
        link = match(spec)
        assert link is not None
        assert link.methods == (GET,)

    def test_no_linkable_method(self):
        """Test a target with only PUT yields nothing."""
        spec = make_spec({
            "/items": {"get": make_operation()},
            "/items/{id}": {"put": make_operation()},
        })
        assert match(spec) is None

    def test_config_limits_target_methods(self):
        """Test disabled methods are neither validated nor linked."""
        spec = make_spec({
            "/items": {"get": make_operation()},
            "/items/{id}": {
                "get": make_operation(),
                "post": make_operation(parameters=[make_param("token", required=True)]),
            },
        })
        link = match(spec, config=GeneratorConfig(target_methods=["get"]))
        assert link.methods == (GET,)
        # Naming still follows the target's method combination
        assert link.method_suffix

    def test_config_excluding_all_target_methods(self):
        """Test a target whose only method is disabled is dropped."""
        spec = make_spec({
            "/items": {"get": make_operation()},
            "/items/{id}": {"delete": make_operation()},
        })
        assert match(spec, config=GeneratorConfig(target_methods=["get", "post"])) is None

    def test_match_all_keeps_order(self):
        """Test accepted links keep candidate order and rejected ones vanish."""
        spec = make_spec({
            "/items": {"get": make_operation()},
            "/items/{id}": {"get": make_operation(parameters=[make_param("id", "path")])},
            "/items/stats": {"get": make_operation()},
            "/items/search": {"get": make_operation()},
        })
        pairs = [
            CandidatePair("/items", "/items/{id}"),
            CandidatePair("/items", "/items/stats"),
            CandidatePair("/items", "/items/search"),
        ]
        links = ParameterMatcher(spec).match_all(pairs)
        assert [link.to_path for link in links] == ["/items/stats", "/items/search"]

    def test_malformed_parameters_raise(self):
        """Test a non-list parameters field fails fast."""
        spec = make_spec({
            "/items": {"get": make_operation()},
            "/items/{id}": {"get": {"parameters": {"id": {}}, "responses": {"200": {}}}},
        })
        with pytest.raises(LinkGenerationError, match="must be a list"):
            match(spec)

    def test_parameter_without_name_raises(self):
        """Test parameters lacking name or in fail fast."""
        spec = make_spec({
            "/items": {"get": make_operation(parameters=[{"in": "query"}])},
            "/items/{id}": {"get": make_operation()},
        })
        with pytest.raises(LinkGenerationError, match="'name' and 'in'"):
            match(spec)
