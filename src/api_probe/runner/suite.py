"""Suite runner: executes many test cases concurrently and aggregates the outcome."""

import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone

from api_probe.config import settings
from api_probe.models import (
    ApiSpecification,
    SuiteSummary,
    TestCase,
    TestResult,
    TestSuiteConfig,
    TestSuiteResult,
)
from api_probe.runner.executor import TestExecutor

logger = logging.getLogger(__name__)


class SuiteRunner:
    """Runs test cases concurrently; results keep submission order.

    There is no suite-level cancellation: each request is bounded by the
    executor timeout, and a caller wanting a suite deadline can wrap
    :meth:`run` in ``asyncio.wait_for``.
    """

    def __init__(self, executor: TestExecutor | None = None, max_concurrency: int | None = None):
        self.executor = executor or TestExecutor()
        self.max_concurrency = max_concurrency if max_concurrency is not None else settings.max_concurrency

    async def run(
        self,
        test_cases: list[TestCase],
        base_url: str,
        name: str | None = None,
        api_spec: ApiSpecification | None = None,
    ) -> TestSuiteResult:
        start_time = datetime.now(timezone.utc)
        started = time.perf_counter()
        logger.info("Running %d test case(s) against %s", len(test_cases), base_url)

        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None

        async def run_one(test_case: TestCase) -> TestResult:
            if semaphore is None:
                return await self.executor.run(test_case, base_url)
            async with semaphore:
                return await self.executor.run(test_case, base_url)

        # gather returns results in argument order, whatever order they finish in
        results = list(await asyncio.gather(*(run_one(tc) for tc in test_cases)))

        duration_ms = (time.perf_counter() - started) * 1000
        end_time = datetime.now(timezone.utc)
        passed = sum(1 for r in results if r.passed)
        summary = SuiteSummary(
            total=len(results),
            passed=passed,
            failed=len(results) - passed,
            duration_ms=duration_ms,
        )
        logger.info("Suite finished: %d passed, %d failed in %.0fms", summary.passed, summary.failed, duration_ms)

        return TestSuiteResult(
            id=str(uuid.uuid4()),
            config=TestSuiteConfig(
                name=name or f"Test Run {start_time.isoformat()}",
                base_url=base_url,
                api_spec=api_spec,
            ),
            results=results,
            start_time=start_time,
            end_time=end_time,
            summary=summary,
        )
