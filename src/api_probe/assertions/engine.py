"""Assertion engine: evaluates natural-language assertions against a response.

Explicit assertions are matched against an ordered rule table; the first
rule whose pattern matches decides the result, and text matching no rule
yields a failing "unsupported" result rather than an exception.

Auto-discovery derives extra checks from the shape of the response body.
These describe what is true of a well-formed response, so most of them
pass; a low pass rate points at a structurally unusual response.
"""

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from api_probe.models import AssertionResult, ResponseSnapshot

WELL_KNOWN_FIELDS = ("id", "name", "title", "email", "userId", "createdAt")

ARRAY_LOCATIONS = ("results", "data")


@dataclass(frozen=True)
class Outcome:
    passed: bool
    actual: Any = None
    expected: Any = None
    error: str | None = None


@dataclass(frozen=True)
class AssertionRule:
    """A named pattern plus the evaluator invoked with its match."""

    name: str
    pattern: re.Pattern
    evaluate: Callable[[re.Match, ResponseSnapshot], Outcome]


# -- explicit rules -----------------------------------------------------------


def _check_status(match: re.Match, response: ResponseSnapshot) -> Outcome:
    expected = int(match.group("number"))
    return Outcome(passed=response.status == expected, actual=response.status, expected=expected)


def _check_contains(match: re.Match, response: ResponseSnapshot) -> Outcome:
    needle = next(g for g in match.group("dq", "sq", "bare") if g is not None)
    text = body_as_text(response.body)
    found = needle in text
    return Outcome(
        passed=found,
        actual=f"Body {'contains' if found else 'does not contain'} {needle!r}",
        expected=f"Body containing {needle!r}",
    )


def _check_has_property(match: re.Match, response: ResponseSnapshot) -> Outcome:
    prop = match.group("prop")
    body = response.body
    if isinstance(body, list):
        found = any(isinstance(item, dict) and prop in item for item in body)
        return Outcome(
            passed=found,
            actual=f"Array elements have property {prop!r}: {found}",
            expected=f"Property {prop!r} in array elements",
        )
    if isinstance(body, dict):
        found = prop in body
        return Outcome(
            passed=found,
            actual=f"Object has property {prop!r}: {found}",
            expected=f"Property {prop!r}",
        )
    return Outcome(
        passed=False,
        actual=f"Body is {describe_type(body)}",
        expected=f"Property {prop!r}",
    )


def _check_array_length(match: re.Match, response: ResponseSnapshot) -> Outcome:
    expected = int(match.group("number"))
    items = find_array(response.body)
    if items is None:
        return Outcome(
            passed=False,
            expected=expected,
            error=f"No array found in response body (looked at body, {', '.join('body.' + k for k in ARRAY_LOCATIONS)})",
        )
    return Outcome(passed=len(items) == expected, actual=len(items), expected=expected)


RULES: tuple[AssertionRule, ...] = (
    AssertionRule(
        "status",
        re.compile(r"(?=.*status)(?:.*?)(?P<number>\d+)", re.IGNORECASE | re.DOTALL),
        _check_status,
    ),
    AssertionRule(
        "contains",
        re.compile(r"\bcontains?\s+(?:\"(?P<dq>[^\"]*)\"|'(?P<sq>[^']*)'|(?P<bare>\S.*?))\s*$", re.IGNORECASE | re.DOTALL),
        _check_contains,
    ),
    AssertionRule(
        "has_property",
        re.compile(r"\bhas\s+property\s+[\"']?(?P<prop>[^\"'\s]+)[\"']?", re.IGNORECASE),
        _check_has_property,
    ),
    AssertionRule(
        "array_length",
        re.compile(r"(?=.*length)(?:.*?)(?P<number>\d+)", re.IGNORECASE | re.DOTALL),
        _check_array_length,
    ),
)


def evaluate(assertion: str, response: ResponseSnapshot, rules: tuple[AssertionRule, ...] = RULES) -> AssertionResult:
    """Evaluate one explicit assertion. Never raises."""
    for rule in rules:
        match = rule.pattern.search(assertion)
        if match is None:
            continue
        outcome = rule.evaluate(match, response)
        return AssertionResult(
            assertion=assertion,
            passed=outcome.passed,
            actual=outcome.actual,
            expected=outcome.expected,
            error=outcome.error,
            origin="explicit",
        )

    return AssertionResult(
        assertion=assertion,
        passed=False,
        error=f"Unsupported assertion: {assertion!r}",
        origin="explicit",
    )


# -- auto-discovery -----------------------------------------------------------


class BodyShape(Enum):
    ARRAY = "array"
    OBJECT = "object"
    NULL = "null"
    PRIMITIVE = "primitive"


def classify_body(body: Any) -> BodyShape:
    if body is None:
        return BodyShape.NULL
    if isinstance(body, list):
        return BodyShape.ARRAY
    if isinstance(body, dict):
        return BodyShape.OBJECT
    return BodyShape.PRIMITIVE


def auto_discover(response: ResponseSnapshot, expected_status: int) -> list[AssertionResult]:
    """Derive assertions from what the response looks like."""
    results = [
        _auto(
            f"Status code is {response.status}",
            passed=response.status == expected_status,
            actual=response.status,
            expected=expected_status,
        )
    ]

    body = response.body
    shape = classify_body(body)
    if shape is BodyShape.ARRAY:
        results.extend(_discover_array(body))
    elif shape is BodyShape.OBJECT:
        results.extend(_discover_object(body))
    elif shape is BodyShape.NULL:
        is_error = response.status >= 400
        results.append(
            _auto(
                "Response is empty",
                passed=is_error,
                actual="No data",
                expected="No data (error response)" if is_error else "Some data",
            )
        )
    elif shape is BodyShape.PRIMITIVE:
        kind = describe_type(body)
        results.append(_auto(f"Response is {kind}", passed=True, actual=f"{kind}: {body}", expected=kind))
    else:
        raise AssertionError(f"unhandled body shape: {shape}")

    content_type = _header(response.headers, "content-type")
    if content_type:
        lowered = content_type.lower()
        results.append(
            _auto(
                f"Content-Type is {content_type}",
                passed="json" in lowered or lowered.startswith("text/"),
                actual=content_type,
                expected="JSON or text content type",
            )
        )

    return results


def _discover_array(body: list) -> list[AssertionResult]:
    results = [_auto("Response is an array", passed=True, actual=f"Array with {len(body)} items", expected="Array")]
    if not body:
        results.append(_auto("Array is empty", passed=True, actual="Empty array", expected="Empty array"))
        return results

    first = body[0]
    if isinstance(first, dict):
        for field in WELL_KNOWN_FIELDS:
            if field in first:
                results.append(
                    _auto(
                        f"Array items have '{field}' property",
                        passed=True,
                        actual=f"Property '{field}' exists",
                        expected=f"Property '{field}'",
                    )
                )
    return results


def _discover_object(body: dict) -> list[AssertionResult]:
    keys = list(body)
    results = [
        _auto("Response is an object", passed=True, actual=f"Object with {len(keys)} properties", expected="Object"),
        _auto(
            "Object has properties",
            passed=bool(keys),
            actual=f"Properties: {', '.join(map(str, keys))}",
            expected="Object with properties",
        ),
    ]
    for field in WELL_KNOWN_FIELDS:
        if field in body:
            results.append(
                _auto(
                    f"Object has '{field}' property",
                    passed=True,
                    actual=f"Property '{field}' = {json.dumps(body[field], default=str)}",
                    expected=f"Property '{field}'",
                )
            )
    return results


def _auto(assertion: str, passed: bool, actual: Any = None, expected: Any = None) -> AssertionResult:
    return AssertionResult(assertion=assertion, passed=passed, actual=actual, expected=expected, origin="auto")


# -- helpers ------------------------------------------------------------------


def body_as_text(body: Any) -> str:
    if body is None:
        return ""
    if isinstance(body, str):
        return body
    return json.dumps(body, ensure_ascii=False, default=str)


def find_array(body: Any) -> list | None:
    """The body itself if it is an array, else body.results, else body.data."""
    if isinstance(body, list):
        return body
    if isinstance(body, dict):
        for key in ARRAY_LOCATIONS:
            if isinstance(body.get(key), list):
                return body[key]
    return None


def describe_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _header(headers: dict[str, str], name: str) -> str | None:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None
