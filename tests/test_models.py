import pytest
from pydantic import ValidationError

from api_probe.models import ApiSpecification, AssertionResult, Operation, Parameter, TestCase


class TestParameter:
    def test_reads_openapi_keys(self):
        p = Parameter.model_validate({"name": "id", "in": "path", "required": True, "schema": {"type": "integer"}})
        assert p.location == "path"
        assert p.required is True
        assert p.param_type == "integer"

    def test_defaults(self):
        p = Parameter(name="q")
        assert p.location == "query"
        assert p.required is False
        assert p.param_type is None


class TestOperation:
    def test_integer_status_keys_become_strings(self):
        op = Operation.model_validate({"responses": {200: {"description": "OK"}, 404: None}})
        assert set(op.responses) == {"200", "404"}
        assert op.responses["200"].description == "OK"
        assert op.responses["404"].description == ""


class TestApiSpecification:
    def test_operations_in_declaration_order(self):
        spec = ApiSpecification.model_validate({
            "paths": {
                "/b": {"post": {}, "get": {}},
                "/a": {"delete": {}},
            }
        })
        assert [(p, m) for p, m, _ in spec.operations()] == [("/b", "POST"), ("/b", "GET"), ("/a", "DELETE")]

    def test_operations_skip_non_verb_keys(self):
        spec = ApiSpecification.model_validate({
            "paths": {"/a": {"parameters": [{"name": "x", "in": "path"}], "summary": "s", "get": {}}}
        })
        assert [m for _, m, _ in spec.operations()] == ["GET"]

    def test_extra_keys_survive_dump(self):
        spec = ApiSpecification.model_validate({"openapi": "3.0.0", "info": {"title": "T", "version": "1"}, "paths": {}})
        doc = spec.to_document()
        assert doc["openapi"] == "3.0.0"
        assert doc["info"]["title"] == "T"


class TestTestCase:
    def test_method_is_uppercased(self):
        tc = TestCase(name="t", endpoint="/x", method="get", expected_status=200)
        assert tc.method == "GET"

    def test_rejects_unknown_method(self):
        with pytest.raises(ValidationError):
            TestCase(name="t", endpoint="/x", method="TRACE", expected_status=200)

    def test_json_uses_camel_case(self):
        tc = TestCase(name="t", endpoint="/x", method="POST", expected_status=201, assertions=["a"])
        data = tc.model_dump(by_alias=True)
        assert data["expectedStatus"] == 201
        assert "expected_status" not in data

    def test_accepts_camel_case_input(self):
        tc = TestCase.model_validate({"name": "t", "endpoint": "/x", "method": "GET", "expectedStatus": 404})
        assert tc.expected_status == 404

    def test_is_frozen(self):
        tc = TestCase(name="t", endpoint="/x", method="GET", expected_status=200)
        with pytest.raises(ValidationError):
            tc.name = "other"


class TestAssertionResult:
    def test_defaults_to_explicit_origin(self):
        r = AssertionResult(assertion="x", passed=True)
        assert r.origin == "explicit"
        assert r.error is None
