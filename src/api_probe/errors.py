"""Exception hierarchy for api-probe.

Only caller-facing problems are raised: a malformed spec, or an unknown
identifier. Failures local to one assertion or one test case are recorded
as data on the result models instead.
"""


class ApiProbeError(Exception):
    """Base class for all api-probe errors."""


class SpecError(ApiProbeError):
    """The supplied API specification cannot be used."""


class SpecFormatError(SpecError):
    """The specification text could not be parsed as structured data."""


class SpecSchemaError(SpecError):
    """The specification parsed, but lacks a usable ``paths`` mapping."""


class GenerationFailure(ApiProbeError):
    """The AI-assisted stage produced nothing usable. Never leaves the generator."""


class NotFoundError(ApiProbeError):
    """An unknown generation or suite-result identifier was requested."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")
