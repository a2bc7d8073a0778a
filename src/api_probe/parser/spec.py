"""API specification loading and sanity checks.

Accepts YAML or JSON text describing ``paths`` -> method -> operation and
turns it into an ApiSpecification.
"""

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from api_probe.errors import SpecFormatError, SpecSchemaError
from api_probe.models import ApiSpecification


def validate_spec(raw: str) -> ApiSpecification:
    """Parse specification text and check it has a usable ``paths`` mapping."""
    return spec_from_mapping(_parse_text(raw))


def load_spec(file_path: Path) -> ApiSpecification:
    """Read and validate a specification file."""
    return validate_spec(file_path.read_text(encoding="utf-8"))


def spec_from_mapping(data: Any) -> ApiSpecification:
    """Validate an already-decoded specification document."""
    if not isinstance(data, dict):
        raise SpecSchemaError(f"specification must be a mapping, got {type(data).__name__}")
    if "paths" not in data or data["paths"] is None:
        raise SpecSchemaError("specification has no 'paths'")
    if not isinstance(data["paths"], dict):
        raise SpecSchemaError(f"'paths' must be a mapping, got {type(data['paths']).__name__}")

    try:
        spec = ApiSpecification.model_validate(data)
        spec.operations()
    except ValidationError as e:
        raise SpecSchemaError(f"invalid specification: {e.error_count()} error(s): {_first_error(e)}") from e
    return spec


def _parse_text(raw: str) -> Any:
    if not raw or not raw.strip():
        raise SpecFormatError("specification is empty")

    # YAML first; it covers most JSON as well
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as yaml_error:
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, ValueError):
            raise SpecFormatError(f"specification is not valid YAML or JSON: {yaml_error}") from yaml_error


def _first_error(e: ValidationError) -> str:
    err = e.errors()[0]
    loc = ".".join(str(p) for p in err["loc"])
    return f"{loc}: {err['msg']}"
