"""
JSON Schema definitions for data validation.

This module provides JSON Schema validation for the circuit wire format, the
run result document and the engine configuration file.
"""

from typing import Dict, Any, List, Optional
from jsonschema import Draft7Validator
import logging

logger = logging.getLogger(__name__)


PORT_TYPES = ["number", "string", "boolean", "json", "blob", "any"]

NODE_STATUSES = ["completed", "error", "skipped", "not-started", "running"]

RUN_STATUSES = ["running", "completed", "completed_with_errors", "cancelled", "failed"]


PORT_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {
            "type": "string",
            "minLength": 1,
            "description": "Port name, unique within the node side"
        },
        "type": {
            "type": "string",
            "enum": PORT_TYPES,
            "description": "Kind of value the port carries"
        },
        "value": {
            "description": "Node-local default value"
        },
        "required": {
            "type": "boolean",
            "default": False
        },
        "repeated": {
            "type": "boolean",
            "default": False,
            "description": "Collect every connected value into a list"
        }
    },
    "required": ["name", "type"],
    "additionalProperties": True
}

CIRCUIT_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Circuit",
    "description": "Persisted/transmitted form of a workflow graph",
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "name": {"type": "string"},
        "nodes": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "name": {"type": "string"},
                    "type": {
                        "type": "string",
                        "minLength": 1,
                        "description": "Node-type identifier resolved through the registry"
                    },
                    "inputs": {"type": "array", "items": PORT_SCHEMA},
                    "outputs": {"type": "array", "items": PORT_SCHEMA},
                    "error": {"type": ["string", "null"]}
                },
                "required": ["id", "name", "type", "inputs", "outputs"],
                "additionalProperties": True
            }
        },
        "edges": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "source": {"type": "string", "minLength": 1},
                    "target": {"type": "string", "minLength": 1},
                    "sourceOutput": {"type": "string", "minLength": 1},
                    "targetInput": {"type": "string", "minLength": 1}
                },
                "required": ["id", "source", "target", "sourceOutput", "targetInput"],
                "additionalProperties": True
            }
        }
    },
    "required": ["nodes", "edges"],
    "additionalProperties": True
}

RUN_RESULT_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "RunResult",
    "description": "Outcome of one execution attempt over a circuit",
    "type": "object",
    "properties": {
        "runId": {"type": "string", "minLength": 1},
        "circuitId": {"type": ["string", "null"]},
        "status": {"type": "string", "enum": RUN_STATUSES},
        "durationMs": {"type": ["number", "null"], "minimum": 0},
        "errors": {"type": "array", "items": {"type": "string"}},
        "nodes": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "status": {"type": "string", "enum": NODE_STATUSES},
                    "outputs": {"type": "object"},
                    "error": {"type": "string"},
                    "errorKind": {
                        "type": "string",
                        "enum": ["validation", "node_execution", "system"]
                    },
                    "skipReason": {
                        "type": "string",
                        "enum": ["upstream_failure", "conditional_branch"]
                    },
                    "blockedBy": {"type": "array", "items": {"type": "string"}},
                    "attempts": {"type": "integer", "minimum": 0},
                    "durationMs": {"type": ["number", "null"]}
                },
                "required": ["status"]
            }
        }
    },
    "required": ["runId", "status", "nodes"],
    "additionalProperties": False
}

ENGINE_CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "EngineConfig",
    "description": "Configuration file for the circuit engine",
    "type": "object",
    "properties": {
        "scheduler": {
            "type": "object",
            "properties": {
                "max_workers": {"type": "integer", "minimum": 1},
                "node_timeout_seconds": {"type": ["number", "null"], "exclusiveMinimum": 0},
                "max_retries": {"type": "integer", "minimum": 0},
                "max_memory_mb": {"type": "number", "exclusiveMinimum": 0}
            },
            "required": ["max_workers", "node_timeout_seconds", "max_retries", "max_memory_mb"],
            "additionalProperties": False
        },
        "ledger": {
            "type": "object",
            "properties": {
                "backend": {"type": "string", "enum": ["memory", "sqlite"]},
                "db_path": {"type": "string", "minLength": 1}
            },
            "required": ["backend", "db_path"],
            "additionalProperties": False
        },
        "logging": {
            "type": "object",
            "properties": {
                "level": {
                    "type": "string",
                    "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
                },
                "file": {"type": ["string", "null"]}
            },
            "required": ["level", "file"],
            "additionalProperties": False
        }
    },
    "required": ["scheduler", "ledger", "logging"],
    "additionalProperties": False
}


class SchemaValidator:
    """
    JSON Schema validator for circuit engine documents.

    Provides centralized validation for the structures exchanged with hosts.
    """

    def __init__(self):
        """Initialize the schema validator with all schemas."""
        self.schemas = {
            'circuit': CIRCUIT_SCHEMA,
            'run_result': RUN_RESULT_SCHEMA,
            'engine_config': ENGINE_CONFIG_SCHEMA
        }

        # Pre-compile validators
        self.validators = {
            name: Draft7Validator(schema)
            for name, schema in self.schemas.items()
        }

    def validate_data(self, data: Dict[str, Any], schema_name: str) -> List[str]:
        """
        Validate data against a specific schema.

        Args:
            data: Data to validate.
            schema_name: Name of the schema to validate against.

        Returns:
            List of validation error messages (empty if valid).
        """
        if schema_name not in self.validators:
            raise ValueError(f"Unknown schema: {schema_name}")

        validator = self.validators[schema_name]
        errors = []

        for error in sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path)):
            error_path = " -> ".join(str(p) for p in error.absolute_path)
            if error_path:
                error_msg = f"Field '{error_path}': {error.message}"
            else:
                error_msg = error.message
            errors.append(error_msg)

        return errors

    def is_valid(self, data: Dict[str, Any], schema_name: str) -> bool:
        """Check if data is valid against a schema."""
        return len(self.validate_data(data, schema_name)) == 0

    def validate_circuit(self, data: Dict[str, Any]) -> List[str]:
        """Validate a serialized circuit."""
        return self.validate_data(data, 'circuit')

    def validate_run_result(self, data: Dict[str, Any]) -> List[str]:
        """Validate a serialized run result."""
        return self.validate_data(data, 'run_result')

    def validate_engine_config(self, data: Dict[str, Any]) -> List[str]:
        """Validate an engine configuration document."""
        return self.validate_data(data, 'engine_config')

    def get_schema(self, schema_name: str) -> Dict[str, Any]:
        """Get a schema by name."""
        if schema_name not in self.schemas:
            raise ValueError(f"Unknown schema: {schema_name}")
        return self.schemas[schema_name].copy()

    def list_schemas(self) -> List[str]:
        """Get list of available schema names."""
        return list(self.schemas.keys())


# Shared validator instance; holds only compiled schemas
_validator: Optional[SchemaValidator] = None


def get_validator() -> SchemaValidator:
    """Get the shared schema validator instance."""
    global _validator
    if _validator is None:
        _validator = SchemaValidator()
    return _validator


def validate_data(data: Dict[str, Any], schema_name: str) -> List[str]:
    """Convenience function to validate data."""
    return get_validator().validate_data(data, schema_name)


def is_valid_data(data: Dict[str, Any], schema_name: str) -> bool:
    """Convenience function to check if data is valid."""
    return get_validator().is_valid(data, schema_name)
