"""Validation gate for LLM-proposed test cases.

Candidates arrive as arbitrary decoded JSON. Anything that does not have
the TestCase shape is dropped quietly; the caller decides what an empty
result means.
"""

import logging
import math
from numbers import Real
from typing import Any

from api_probe.models import HTTP_METHODS, TestCase

logger = logging.getLogger(__name__)


def candidate_errors(candidate: Any) -> list[str]:
    """Return the reasons ``candidate`` is not a usable test case (empty if usable)."""
    if not isinstance(candidate, dict):
        return [f"not an object: {type(candidate).__name__}"]

    errors = []
    for key in ("name", "endpoint"):
        value = candidate.get(key)
        if not isinstance(value, str) or not value.strip():
            errors.append(f"'{key}' must be a non-empty string")

    method = candidate.get("method")
    if not isinstance(method, str) or method.upper() not in HTTP_METHODS:
        errors.append(f"'method' must be one of {', '.join(HTTP_METHODS)}")

    status = candidate.get("expectedStatus")
    if isinstance(status, bool) or not isinstance(status, Real) or not math.isfinite(status):
        errors.append("'expectedStatus' must be a number")

    assertions = candidate.get("assertions")
    if not isinstance(assertions, list) or not all(isinstance(a, str) for a in assertions):
        errors.append("'assertions' must be a list of strings")

    # null params is read as "no params"
    if "params" in candidate and candidate["params"] is not None and not isinstance(candidate["params"], dict):
        errors.append("'params' must be an object")

    return errors


def is_valid_candidate(candidate: Any) -> bool:
    return not candidate_errors(candidate)


def filter_candidates(candidates: list[Any]) -> list[TestCase]:
    """Keep only well-formed candidates, converted to TestCase."""
    cases = []
    for index, candidate in enumerate(candidates):
        errors = candidate_errors(candidate)
        if errors:
            logger.debug("Dropping candidate #%d: %s", index, "; ".join(errors))
            continue
        cases.append(
            TestCase(
                name=candidate["name"],
                endpoint=candidate["endpoint"],
                method=candidate["method"].upper(),
                params=candidate.get("params") or {},
                expected_status=int(candidate["expectedStatus"]),
                assertions=list(candidate["assertions"]),
            )
        )
    return cases
