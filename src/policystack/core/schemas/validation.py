"""Shared schema validation utilities.

policystack validates structured YAML payloads (document frontmatter and
merged configuration) using JSON Schema. Schemas are stored as YAML files
under ``policystack.data/schemas/``.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List, Mapping

from jsonschema import Draft202012Validator

from policystack.core.utils.io import read_yaml
from policystack.data import get_data_path


class SchemaValidationError(ValueError):
    """Raised when schema validation fails."""

    def __init__(self, message: str, errors: List[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


def load_schema(schema_name: str) -> Dict[str, Any]:
    """Load a bundled schema by name (``.schema.yaml`` is appended when missing).

    Raises:
        FileNotFoundError: If the schema file doesn't exist.
        ValueError: If the schema is not a YAML mapping.
    """
    filename = schema_name
    if not filename.endswith((".yaml", ".yml")):
        filename = f"{filename}.schema.yaml"
    path = get_data_path("schemas", filename)
    schema = read_yaml(path, default=None, raise_on_error=True)
    if not isinstance(schema, dict):
        raise ValueError(f"Schema must be a YAML mapping, got {type(schema).__name__}")
    return schema


@lru_cache(maxsize=8)
def _validator(schema_name: str) -> Draft202012Validator:
    schema = load_schema(schema_name)
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def schema_errors(payload: Mapping[str, Any], schema_name: str) -> List[str]:
    """Return human-readable validation errors (empty when ``payload`` is valid)."""
    validator = _validator(schema_name)
    errors: List[str] = []
    for err in sorted(validator.iter_errors(dict(payload)), key=lambda e: [str(p) for p in e.path]):
        path = "/".join(str(p) for p in err.path) or "<root>"
        errors.append(f"{path}: {err.message}")
    return errors


def validate_payload(payload: Mapping[str, Any], schema_name: str) -> None:
    """Validate ``payload`` against a bundled schema.

    Raises:
        SchemaValidationError: If validation fails.
    """
    errors = schema_errors(payload, schema_name)
    if errors:
        raise SchemaValidationError(
            f"{schema_name} validation failed:\n" + "\n".join(f"- {e}" for e in errors),
            errors,
        )


__all__ = ["SchemaValidationError", "load_schema", "schema_errors", "validate_payload"]
