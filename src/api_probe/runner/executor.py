"""Test execution engine: one HTTP round trip per test case, then a verdict."""

import logging
import re
import time
from typing import Any

import httpx

from api_probe.assertions.engine import auto_discover, evaluate
from api_probe.config import settings
from api_probe.models import AssertionResult, ResponseSnapshot, TestCase, TestResult

logger = logging.getLogger(__name__)

_PATH_PARAM_RE = re.compile(r"\{(\w+)\}")


def pass_rate(results: list[AssertionResult]) -> float:
    """Fraction of passing results; an empty group counts as fully passing."""
    if not results:
        return 1.0
    return sum(1 for r in results if r.passed) / len(results)


class TestExecutor:
    """Execute a single test case against a base URL."""

    __test__ = False

    def __init__(
        self,
        timeout: float | None = None,
        auto_threshold: float | None = None,
        explicit_threshold: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            timeout: Per-request timeout in seconds; expiry is a transport failure
            auto_threshold: Minimum pass rate for auto-discovered assertions
            explicit_threshold: Minimum pass rate for explicit assertions
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.auto_threshold = auto_threshold if auto_threshold is not None else settings.auto_pass_threshold
        self.explicit_threshold = (
            explicit_threshold if explicit_threshold is not None else settings.explicit_pass_threshold
        )
        self.transport = transport

    async def run(self, test_case: TestCase, base_url: str) -> TestResult:
        endpoint, params = self._fill_path_parameters(test_case.endpoint, test_case.params)
        url = f"{base_url.rstrip('/')}{endpoint}"
        request_kwargs: dict[str, Any] = {"params": params} if test_case.method == "GET" else {"json": params}

        started = time.perf_counter()
        try:
            # A client per case keeps cookies and connections from leaking between cases
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(test_case.method, url, **request_kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            duration_ms = (time.perf_counter() - started) * 1000
            message = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
            logger.info("%s %s failed at transport level: %s", test_case.method, url, message)
            return TestResult(
                test_case=test_case,
                passed=False,
                duration_ms=duration_ms,
                status_code=0,
                assertion_results=[],
                response_snapshot=ResponseSnapshot(status=0),
                error=message,
            )
        duration_ms = (time.perf_counter() - started) * 1000

        snapshot = ResponseSnapshot(
            status=response.status_code,
            headers=dict(response.headers),
            body=self._decode_body(response),
        )

        auto_results = auto_discover(snapshot, test_case.expected_status)
        explicit_results = [evaluate(text, snapshot) for text in test_case.assertions]
        passed = self._verdict(snapshot.status, test_case.expected_status, auto_results, explicit_results)

        logger.debug(
            "%s %s -> %d (%s) in %.1fms",
            test_case.method, url, snapshot.status, "passed" if passed else "failed", duration_ms,
        )
        return TestResult(
            test_case=test_case,
            passed=passed,
            duration_ms=duration_ms,
            status_code=snapshot.status,
            assertion_results=auto_results + explicit_results,
            response_snapshot=snapshot,
        )

    def _verdict(
        self,
        status: int,
        expected_status: int,
        auto_results: list[AssertionResult],
        explicit_results: list[AssertionResult],
    ) -> bool:
        return (
            status == expected_status
            and pass_rate(auto_results) >= self.auto_threshold
            and pass_rate(explicit_results) >= self.explicit_threshold
        )

    @staticmethod
    def _fill_path_parameters(endpoint: str, params: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        """Replace ``{name}`` placeholders from params; used params are not sent again."""
        remaining = dict(params)

        def replace(match: re.Match) -> str:
            name = match.group(1)
            if name in remaining:
                return str(remaining.pop(name))
            return match.group(0)

        return _PATH_PARAM_RE.sub(replace, endpoint), remaining

    @staticmethod
    def _decode_body(response: httpx.Response) -> Any:
        """JSON when decodable, plain text otherwise, None for an empty body."""
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text
