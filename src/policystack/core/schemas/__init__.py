"""JSON Schema validation for policy metadata and configuration."""
from __future__ import annotations

from .validation import SchemaValidationError, load_schema, schema_errors, validate_payload

__all__ = ["SchemaValidationError", "load_schema", "schema_errors", "validate_payload"]
