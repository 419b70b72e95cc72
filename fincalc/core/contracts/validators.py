"""
JSON Schema Contract Validators

Result records leave the core as plain JSON-compatible dicts
(model.model_dump(mode="json")) for the presentation layer. Their shape is
pinned by JSON Schema contracts and checked with jsonschema.

Schemas (fincalc/core/contracts/schema/):
- loan_result.json
- bond_result.json
- portfolio_result.json
"""

import json
from pathlib import Path
from typing import Any, Dict

import jsonschema
from jsonschema import Draft202012Validator


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Loads and caches JSON Schema files.

    Schemas ship as package data next to this module.
    """

    def __init__(self, schema_dir: Path | None = None):
        self._schema_dir = schema_dir or Path(__file__).parent / "schema"
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")

        self._schemas: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Load a schema by name (without extension).

        Raises:
            FileNotFoundError: If the schema file does not exist
            ValueError: If the file is not a valid Draft 2020-12 schema
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}")

        self._schemas[schema_name] = schema
        return schema


_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """Validates data against one named schema."""

    def __init__(self, schema_name: str):
        self.schema_name = schema_name
        self.schema = _SCHEMA_LOADER.load_schema(schema_name)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Raises:
            jsonschema.ValidationError: If data does not match the schema
        """
        self.validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]):
        return self.validator.iter_errors(data)


class LoanResultValidator(ContractValidator):
    def __init__(self):
        super().__init__("loan_result")


class BondResultValidator(ContractValidator):
    def __init__(self):
        super().__init__("bond_result")


class PortfolioResultValidator(ContractValidator):
    def __init__(self):
        super().__init__("portfolio_result")


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_loan_result(data: Dict[str, Any]) -> None:
    """Validate a dumped AmortizationResult."""
    LoanResultValidator().validate(data)


def validate_bond_result(data: Dict[str, Any]) -> None:
    """Validate a dumped BondAnalysis."""
    BondResultValidator().validate(data)


def validate_portfolio_result(data: Dict[str, Any]) -> None:
    """Validate a dumped PortfolioMetrics."""
    PortfolioResultValidator().validate(data)
