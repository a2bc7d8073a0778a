import asyncio
import json

import httpx

from api_probe.models import AssertionResult, TestCase
from api_probe.runner.executor import TestExecutor, pass_rate

BASE_URL = "http://api.test"

USERS = [
    {"id": 1, "name": "Test User", "email": "test@example.com"},
    {"id": 2, "name": "Another User", "email": "another@example.com"},
]


def mock_api(request: httpx.Request) -> httpx.Response:
    """A tiny users API in the style of json-server."""
    if request.url.path == "/users" and request.method == "GET":
        return httpx.Response(200, json=USERS)
    if request.url.path == "/users" and request.method == "POST":
        return httpx.Response(201, json={"id": 3, **json.loads(request.content)})
    if request.url.path.startswith("/users/") and request.method == "GET":
        user_id = int(request.url.path.rsplit("/", 1)[1])
        for user in USERS:
            if user["id"] == user_id:
                return httpx.Response(200, json=user)
        return httpx.Response(404, json={"error": "Not found"})
    if request.url.path == "/echo":
        return httpx.Response(200, json={"query": dict(request.url.params), "body": request.content.decode() or None})
    if request.url.path == "/empty":
        return httpx.Response(204)
    if request.url.path == "/text":
        return httpx.Response(200, text="pong", headers={"content-type": "text/plain"})
    return httpx.Response(404)


def _executor(handler=mock_api, **kwargs) -> TestExecutor:
    return TestExecutor(transport=httpx.MockTransport(handler), **kwargs)


def _run(test_case: TestCase, executor: TestExecutor | None = None, base_url: str = BASE_URL):
    return asyncio.run((executor or _executor()).run(test_case, base_url))


class TestPassRate:
    def test_empty_is_vacuously_passing(self):
        assert pass_rate([]) == 1.0

    def test_fraction(self):
        results = [AssertionResult(assertion=str(i), passed=i % 2 == 0) for i in range(4)]
        assert pass_rate(results) == 0.5


class TestExecutorHttpMethods:
    def test_get_users_passes(self):
        tc = TestCase(
            name="Get Users Test",
            endpoint="/users",
            method="GET",
            expected_status=200,
            assertions=["status code should be 200", 'has property "id"', "array length should be 2"],
        )
        result = _run(tc)
        assert result.passed is True
        assert result.status_code == 200
        assert result.error is None
        assert all(a.passed for a in result.assertion_results)
        auto = [a.assertion for a in result.assertion_results if a.origin == "auto"]
        assert "Response is an array" in auto
        assert "Array items have 'id' property" in auto
        assert result.response_snapshot.body == USERS

    def test_auto_results_come_before_explicit(self):
        tc = TestCase(name="t", endpoint="/users", method="GET", expected_status=200, assertions=["status code should be 200"])
        origins = [a.origin for a in _run(tc).assertion_results]
        assert origins == sorted(origins)  # "auto" < "explicit"
        assert origins[-1] == "explicit"

    def test_post_creates_user(self):
        tc = TestCase(
            name="Create user",
            endpoint="/users",
            method="POST",
            params={"name": "New User", "email": "new@example.com"},
            expected_status=201,
            assertions=["status code should be 201", 'has property "name"', 'contains "New User"'],
        )
        result = _run(tc)
        assert result.passed
        explicit = [a for a in result.assertion_results if a.origin == "explicit"]
        assert [a.passed for a in explicit] == [True, True, True]

    def test_get_sends_params_as_query(self):
        tc = TestCase(name="q", endpoint="/echo", method="GET", params={"limit": 5}, expected_status=200)
        body = _run(tc).response_snapshot.body
        assert body == {"query": {"limit": "5"}, "body": None}

    def test_put_sends_params_as_json_body(self):
        tc = TestCase(name="b", endpoint="/echo", method="PUT", params={"a": 1}, expected_status=200)
        body = _run(tc).response_snapshot.body
        assert json.loads(body["body"]) == {"a": 1}
        assert body["query"] == {}

    def test_path_parameters_are_filled(self):
        tc = TestCase(name="one", endpoint="/users/{id}", method="GET", params={"id": 2}, expected_status=200)
        result = _run(tc)
        assert result.passed
        assert result.response_snapshot.body["name"] == "Another User"

    def test_trailing_slash_on_base_url(self):
        tc = TestCase(name="t", endpoint="/users", method="GET", expected_status=200)
        assert _run(tc, base_url=BASE_URL + "/").status_code == 200


class TestExecutorVerdict:
    def test_status_mismatch_fails(self):
        tc = TestCase(name="t", endpoint="/users/99", method="GET", expected_status=200)
        result = _run(tc)
        assert result.status_code == 404
        assert result.passed is False

    def test_error_status_is_observable(self):
        tc = TestCase(name="t", endpoint="/users/99", method="GET", expected_status=404, assertions=["status code should be 404"])
        result = _run(tc)
        assert result.passed is True
        assert result.error is None

    def test_half_explicit_assertions_is_enough(self):
        tc = TestCase(
            name="t",
            endpoint="/users",
            method="GET",
            expected_status=200,
            assertions=["status code should be 200", 'contains "Nobody"'],
        )
        assert _run(tc).passed is True

    def test_below_half_explicit_fails(self):
        tc = TestCase(
            name="t",
            endpoint="/users",
            method="GET",
            expected_status=200,
            assertions=["status code should be 200", 'contains "Nobody"', "this is not supported"],
        )
        result = _run(tc)
        assert result.passed is False
        assert "Unsupported assertion" in result.assertion_results[-1].error

    def test_auto_threshold_applies(self):
        # 204 with no body and no content-type: status check passes, "Response is empty" fails -> 50%
        tc = TestCase(name="t", endpoint="/empty", method="DELETE", expected_status=204)
        result = _run(tc)
        assert result.response_snapshot.body is None
        assert result.passed is False

    def test_thresholds_are_configurable(self):
        tc = TestCase(name="t", endpoint="/empty", method="DELETE", expected_status=204)
        assert _run(tc, _executor(auto_threshold=0.5)).passed is True

    def test_text_body(self):
        tc = TestCase(name="t", endpoint="/text", method="GET", expected_status=200, assertions=['contains "pong"'])
        result = _run(tc)
        assert result.response_snapshot.body == "pong"
        assert result.passed


class TestExecutorTransportFailures:
    def _failing(self, exc: Exception) -> TestExecutor:
        def handler(request: httpx.Request) -> httpx.Response:
            raise exc

        return _executor(handler)

    def test_unreachable_host(self):
        executor = self._failing(httpx.ConnectError("Name or service not known"))
        tc = TestCase(name="t", endpoint="/users", method="GET", expected_status=200, assertions=["status code should be 200"])
        result = _run(tc, executor)
        assert result.status_code == 0
        assert result.passed is False
        assert result.assertion_results == []
        assert "ConnectError" in result.error
        assert "Name or service not known" in result.error

    def test_timeout(self):
        executor = self._failing(httpx.ReadTimeout("timed out"))
        tc = TestCase(name="t", endpoint="/slow", method="GET", expected_status=200)
        result = _run(tc, executor)
        assert result.status_code == 0
        assert result.error.startswith("ReadTimeout")

    def test_invalid_url(self):
        tc = TestCase(name="t", endpoint="/users", method="GET", expected_status=200)
        result = asyncio.run(TestExecutor().run(tc, "not a url"))
        assert result.status_code == 0
        assert result.passed is False
        assert result.error

    def test_default_timeout(self):
        assert TestExecutor().timeout == 30.0
