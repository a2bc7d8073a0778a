"""Test case generator: asks the LLM for cases, falls back to a deterministic pass.

Both strategies share the ``generate(spec) -> list[TestCase]`` shape;
TestCaseGenerator tries the AI strategy and silently switches to the
fallback when it fails or yields nothing valid.
"""

import json
import logging
from pathlib import Path
from typing import Any, Protocol

from api_probe.config import settings
from api_probe.errors import GenerationFailure
from api_probe.generator.extract import extract_json_array
from api_probe.generator.validator import filter_candidates
from api_probe.llm import LlmClient
from api_probe.models import ApiSpecification, Operation, TestCase
from api_probe.parser.spec import validate_spec

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

logger = logging.getLogger(__name__)


class CaseStrategy(Protocol):
    async def generate(self, spec: ApiSpecification) -> list[TestCase]: ...


class AiCaseStrategy:
    """Generates test cases by prompting the LLM with the whole spec."""

    def __init__(self, client: LlmClient | None = None, model: str | None = None):
        self.client = client or LlmClient(model=model)

    async def generate(self, spec: ApiSpecification) -> list[TestCase]:
        system_prompt = (PROMPTS_DIR / "testcase.md").read_text(encoding="utf-8")
        user_prompt = (
            "Generate test cases for this API specification:\n\n"
            f"```json\n{json.dumps(spec.to_document(), indent=2, ensure_ascii=False)}\n```"
        )

        try:
            reply = await self.client.call(system=system_prompt, user=user_prompt)
        except Exception as e:
            raise GenerationFailure(f"LLM call failed: {e}") from e

        candidates = extract_json_array(reply)
        if candidates is None:
            raise GenerationFailure("no JSON array found in LLM reply")

        cases = filter_candidates(candidates)
        if not cases:
            raise GenerationFailure(f"none of {len(candidates)} candidate(s) passed validation")

        logger.info("LLM proposed %d test case(s), %d valid", len(candidates), len(cases))
        return cases


class FallbackCaseStrategy:
    """One success-path case per declared operation, derived from the spec alone.

    Output depends only on the spec, in declaration order, so the same
    spec always yields the same cases.
    """

    def __init__(self, param_defaults: dict[str, Any] | None = None, default_value: Any = None):
        self.param_defaults = param_defaults if param_defaults is not None else settings.param_defaults
        self.default_value = default_value if default_value is not None else settings.param_default_other

    async def generate(self, spec: ApiSpecification) -> list[TestCase]:
        return self.build(spec)

    def build(self, spec: ApiSpecification) -> list[TestCase]:
        return [self._case_for(path, method, operation) for path, method, operation in spec.operations()]

    def _case_for(self, path: str, method: str, operation: Operation) -> TestCase:
        expected_status = 201 if method == "POST" else 200

        assertions = [f"status code should be {expected_status}"]
        response = operation.responses.get(str(expected_status))
        if response is not None and response.description:
            assertions.append(f'contains "{response.description}"')

        return TestCase(
            name=f"Test {method} {path}",
            endpoint=path,
            method=method,
            params=self._params_for(operation),
            expected_status=expected_status,
            assertions=assertions,
        )

    def _params_for(self, operation: Operation) -> dict[str, Any]:
        return {
            p.name: self.param_defaults.get(p.param_type, self.default_value)
            for p in operation.parameters
            if p.required
        }


class TestCaseGenerator:
    """Runs the primary strategy and falls back to the secondary on failure."""

    __test__ = False

    def __init__(
        self,
        model: str | None = None,
        primary: CaseStrategy | None = None,
        fallback: CaseStrategy | None = None,
    ):
        self.primary = primary or AiCaseStrategy(model=model)
        self.fallback = fallback or FallbackCaseStrategy()

    async def generate(self, spec: ApiSpecification) -> list[TestCase]:
        """Generate test cases for every operation in ``spec``.

        Returns an empty list only when the spec declares no operations.
        """
        if not spec.operations():
            logger.info("Specification declares no operations; nothing to generate")
            return []

        try:
            cases = await self.primary.generate(spec)
            if not cases:
                raise GenerationFailure("primary strategy returned no test cases")
            return cases
        except Exception as e:
            logger.warning("Primary generation failed (%s); using deterministic fallback", e)

        return await self.fallback.generate(spec)

    async def generate_from_text(self, raw: str) -> list[TestCase]:
        """Validate raw spec text, then generate. Spec errors propagate."""
        return await self.generate(validate_spec(raw))
