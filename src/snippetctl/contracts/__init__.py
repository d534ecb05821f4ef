"""JSON Schema contracts for snippetctl artifacts."""

from .schema import REPORT_SCHEMA, schema_path_for, validate, validate_file

__all__ = ["REPORT_SCHEMA", "schema_path_for", "validate", "validate_file"]
