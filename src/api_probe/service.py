"""Request-level workflow shared by the HTTP surface: generate, run, look up."""

import logging
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Any

from api_probe.config import settings
from api_probe.errors import NotFoundError, SpecSchemaError
from api_probe.generator.testcase import TestCaseGenerator
from api_probe.models import ApiSpecification, GenerationRecord, TestCase, TestSuiteResult
from api_probe.parser.spec import spec_from_mapping, validate_spec
from api_probe.runner.suite import SuiteRunner
from api_probe.store import InMemoryStore, Store

logger = logging.getLogger(__name__)


def parse_spec_document(document: Any) -> ApiSpecification:
    """Accept a spec as a decoded mapping or as YAML/JSON text."""
    if isinstance(document, str):
        return validate_spec(document)
    if isinstance(document, dict):
        return spec_from_mapping(document)
    raise SpecSchemaError(f"specification must be an object or text, got {type(document).__name__}")


def summarize_cases(test_cases: list[TestCase]) -> dict[str, Any]:
    return {
        "total": len(test_cases),
        "methods": dict(Counter(tc.method for tc in test_cases)),
    }


class TestingService:
    """Generates and runs test suites, keeping records in the injected stores."""

    __test__ = False

    def __init__(
        self,
        generator: TestCaseGenerator | None = None,
        runner: SuiteRunner | None = None,
        generations: Store[GenerationRecord] | None = None,
        results: Store[TestSuiteResult] | None = None,
    ):
        self.generator = generator or TestCaseGenerator()
        self.runner = runner or SuiteRunner()
        self.generations = generations if generations is not None else InMemoryStore(settings.store_ttl_seconds)
        self.results = results if results is not None else InMemoryStore(settings.store_ttl_seconds)

    async def generate(self, document: Any) -> GenerationRecord:
        spec = parse_spec_document(document)
        test_cases = await self.generator.generate(spec)
        record = GenerationRecord(
            id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc),
            api_spec=spec,
            test_cases=test_cases,
        )
        self.generations.put(record.id, record)
        logger.info("Stored generation %s with %d test case(s)", record.id, len(test_cases))
        return record

    async def run(self, base_url: str, generation_id: str | None = None, document: Any = None) -> TestSuiteResult:
        """Run stored cases (by generation id) or freshly generated ones (from a spec)."""
        if generation_id:
            record = self.get_generation(generation_id)
            spec, test_cases = record.api_spec, record.test_cases
        elif document is not None:
            spec = parse_spec_document(document)
            test_cases = await self.generator.generate(spec)
        else:
            raise ValueError("either generation_id or a specification is required")

        suite = await self.runner.run(test_cases, base_url, api_spec=spec)
        self.results.put(suite.id, suite)
        return suite

    def get_generation(self, generation_id: str) -> GenerationRecord:
        record = self.generations.get(generation_id)
        if record is None:
            raise NotFoundError("Generated test cases", generation_id)
        return record

    def get_result(self, suite_id: str) -> TestSuiteResult:
        suite = self.results.get(suite_id)
        if suite is None:
            raise NotFoundError("Test suite", suite_id)
        return suite
