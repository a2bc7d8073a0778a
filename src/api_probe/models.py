"""Data models shared by the generator, the execution engine and the HTTP surface.

Python attributes are snake_case; the JSON form uses camelCase keys
(``expectedStatus``, ``durationMs``) so results can be exchanged with the
dashboard unchanged. Result models are frozen once built.
"""

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# -- API specification --------------------------------------------------------


def _none_as_blank(value: Any) -> Any:
    return "" if value is None else value


# `description:` with nothing after it loads as None; `version: 1.0` as a float
Text = Annotated[str, BeforeValidator(_none_as_blank)]


class Parameter(CamelModel):
    """A declared operation parameter."""

    model_config = ConfigDict(extra="allow")

    name: str
    location: str = Field(default="query", alias="in")  # query / path / header / cookie
    required: bool = False
    schema_: dict[str, Any] = Field(default_factory=dict, alias="schema")

    @property
    def param_type(self) -> str | None:
        return self.schema_.get("type")


class ResponseSpec(CamelModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    description: Text = ""


class Operation(CamelModel):
    """A single method entry under a path."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    summary: Text = ""
    parameters: list[Parameter] = []
    responses: dict[str, ResponseSpec] = {}

    @field_validator("responses", mode="before")
    @classmethod
    def _stringify_status_keys(cls, value: Any) -> Any:
        # YAML reads `200:` as an int key
        if isinstance(value, dict):
            return {str(k): v if v is not None else {} for k, v in value.items()}
        return value


class ApiInfo(CamelModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    title: Text = ""
    version: Text = ""


class ApiSpecification(CamelModel):
    """A parsed API description: ``paths`` -> method -> operation.

    Unknown top-level keys (``openapi``, ``servers``...) are kept so the
    document can be handed back to the LLM or the caller as it came in.
    """

    model_config = ConfigDict(extra="allow")

    info: ApiInfo | None = None
    paths: dict[str, dict[str, Any]]

    def operations(self) -> list[tuple[str, str, Operation]]:
        """Return ``(path, METHOD, operation)`` triples in declaration order.

        Non-verb keys of a path item (such as path-level ``parameters``) are skipped.
        """
        result = []
        for path, item in self.paths.items():
            for method, raw in item.items():
                if str(method).upper() not in HTTP_METHODS:
                    continue
                result.append((path, str(method).upper(), Operation.model_validate(raw or {})))
        return result

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# -- Test cases and results ---------------------------------------------------


class TestCase(FrozenModel):
    """One concrete request scenario with its expected status and assertions."""

    __test__ = False  # not a pytest class

    name: str
    endpoint: str
    method: Literal["GET", "POST", "PUT", "DELETE", "PATCH"]
    params: dict[str, Any] = {}
    expected_status: int
    assertions: list[str] = []

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class AssertionResult(FrozenModel):
    assertion: str
    passed: bool
    actual: Any = None
    expected: Any = None
    error: str | None = None
    origin: Literal["auto", "explicit"] = "explicit"


class ResponseSnapshot(FrozenModel):
    """What came back from the target: decoded body, or None when it was empty."""

    status: int
    headers: dict[str, str] = {}
    body: Any = None


class TestResult(FrozenModel):
    __test__ = False

    test_case: TestCase
    passed: bool
    duration_ms: float
    status_code: int
    assertion_results: list[AssertionResult] = []
    response_snapshot: ResponseSnapshot
    error: str | None = None


class TestSuiteConfig(FrozenModel):
    __test__ = False

    name: str
    base_url: str
    api_spec: ApiSpecification | None = None


class SuiteSummary(FrozenModel):
    total: int
    passed: int
    failed: int
    duration_ms: float


class TestSuiteResult(FrozenModel):
    __test__ = False

    id: str
    config: TestSuiteConfig
    results: list[TestResult]
    start_time: datetime
    end_time: datetime
    summary: SuiteSummary


class GenerationRecord(FrozenModel):
    """Test cases kept under an id so later runs can reuse them."""

    id: str
    timestamp: datetime
    api_spec: ApiSpecification
    test_cases: list[TestCase]
