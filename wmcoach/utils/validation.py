"""
Schema validation utilities for working-memory documents.

Provides JSON Schema validation with clear error messages and automatic
repair of the common problems found in stored profiles.

Features:
- Format validation (datetime)
- Deep copy to prevent mutations
- Type coercion (numeric strings to numbers)
- Removal of unknown keys
- Capacity clamping and challenge-area de-duplication
- Transparent repair tracking
"""

import json
from copy import deepcopy
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from jsonschema import Draft7Validator, FormatChecker, ValidationError

from ..config import config

PROFILE_SCHEMA = "working_memory_profile.schema.json"
CHECKLIST_INDEX_SCHEMA = "checklist_index.schema.json"
CHECKLIST_ITEMS_SCHEMA = "checklist_items.schema.json"
TASK_INDEX_SCHEMA = "task_index.schema.json"
TASK_BREAKDOWN_SCHEMA = "task_breakdown.schema.json"

CAPACITY_KEYS = ("overall", "visual_spatial", "phonological", "central_executive", "episodic_buffer")
DEFAULT_CHALLENGE_AREAS = ["phonological_loop", "visual_spatial_sketchpad"]


class ValidationResult:
    """
    Result of a validation attempt.

    Attributes:
        valid: Whether data passed validation
        errors: List of error messages
        data: The validated data (may be modified if repair was attempted)
        repairs: List of repairs applied (for transparency)
    """

    def __init__(
        self,
        valid: bool,
        errors: list[str],
        data: Any = None,
        repairs: Optional[list[str]] = None,
    ):
        self.valid = valid
        self.errors = errors
        self.data = data
        self.repairs = repairs or []

    def __bool__(self) -> bool:
        return self.valid

    def __str__(self) -> str:
        if self.valid:
            msg = "Validation passed"
            if self.repairs:
                msg += f" (with {len(self.repairs)} repair(s))"
            return msg
        return f"Validation failed with {len(self.errors)} error(s):\n" + "\n".join(
            f"  - {error}" for error in self.errors
        )


class SchemaValidator:
    """
    JSON Schema validator with auto-repair hooks.

    Usage:
        validator = SchemaValidator("path/to/schema.json")
        result = validator.validate(data)
        if not result:
            print(result.errors)
    """

    def __init__(self, schema_path: Path | str):
        self.schema_path = Path(schema_path)
        with open(self.schema_path, "r", encoding="utf-8") as f:
            self.schema = json.load(f)
        self.validator = Draft7Validator(self.schema, format_checker=FormatChecker())

    def validate(self, data: Any, auto_repair: bool = False) -> ValidationResult:
        """
        Validate data against schema.

        Args:
            data: Data to validate
            auto_repair: If True, attempt to fix common validation errors

        Returns:
            ValidationResult with validation status and any errors
        """
        errors = [self._format_error(e) for e in self.validator.iter_errors(data)]

        if errors:
            if auto_repair:
                repaired, repairs = self._attempt_repair(data, errors)
                result = SchemaValidator.validate(self, repaired, auto_repair=False)
                result.repairs = repairs
                return result
            return ValidationResult(valid=False, errors=errors, data=data)

        return ValidationResult(valid=True, errors=[], data=data)

    def _format_error(self, error: ValidationError) -> str:
        """Convert a ValidationError to a message with its location and validator."""
        path = " -> ".join(str(p) for p in error.path) if error.path else "root"
        validator_name = getattr(error, "validator", "unknown")
        schema_path = "/".join(str(p) for p in error.schema_path)
        return (
            f"At '{path}': {error.message} "
            f"[validator={validator_name}, schema_path=/{schema_path}]"
        )

    def _attempt_repair(self, data: Any, errors: list[str]) -> tuple[Any, list[str]]:
        """Base repair: strip keys the schema forbids. Subclasses add more."""
        repaired = deepcopy(data)
        repairs: list[str] = []
        self._strip_additional_props(repaired, self.schema, repairs)
        return repaired, repairs

    def _strip_additional_props(
        self, obj: Any, schema: dict, repairs: list[str], path: str = "root"
    ):
        """
        Recursively remove keys not allowed by schema (additionalProperties: false).
        Handles both objects and arrays.
        """
        if not isinstance(schema, dict):
            return

        if isinstance(obj, dict) and "properties" in schema:
            allowed = set(schema.get("properties", {}).keys())
            if schema.get("additionalProperties") is False:
                extra_keys = [k for k in list(obj.keys()) if k not in allowed]
                for k in extra_keys:
                    obj.pop(k, None)
                    repairs.append(f"Removed unknown key '{k}' at {path}")

            for k, subschema in schema.get("properties", {}).items():
                if k in obj:
                    self._strip_additional_props(obj[k], subschema, repairs, f"{path}.{k}")

        if isinstance(obj, list) and "items" in schema:
            for i, item in enumerate(obj):
                self._strip_additional_props(item, schema["items"], repairs, f"{path}[{i}]")


class ProfileValidator(SchemaValidator):
    """
    Validator for working-memory profiles with profile-specific checks.

    Repairs (auto_repair=True):
    - Missing meta block and timestamps
    - Numeric strings in capacities
    - Capacities outside [0, 10] clamped
    - Duplicate or unknown challenge areas removed, defaults restored if empty

    Domain checks:
    - A non-initial trend needs at least one recorded session
    """

    def __init__(self, schema_path: Optional[Path] = None):
        super().__init__(schema_path or config.paths.schemas_dir / PROFILE_SCHEMA)

    def validate(self, data: dict, auto_repair: bool = False) -> ValidationResult:
        result = super().validate(data, auto_repair=auto_repair)

        if not result.valid and not auto_repair:
            return result

        checked = result.data if isinstance(result.data, dict) else {}
        profile_errors = []

        if checked.get("progress_trend", "initial") != "initial" and not checked.get("exercise_history"):
            profile_errors.append(
                f"Trend '{checked.get('progress_trend')}' requires exercise history"
            )

        all_errors = result.errors + profile_errors
        return ValidationResult(
            valid=len(all_errors) == 0,
            errors=all_errors,
            data=result.data,
            repairs=result.repairs,
        )

    def _attempt_repair(self, data: dict, errors: list[str]) -> tuple[dict, list[str]]:
        repaired, repairs = super()._attempt_repair(data, errors)
        if not isinstance(repaired, dict):
            return repaired, repairs

        # Meta block and timestamps
        now = datetime.now(timezone.utc).isoformat()
        meta = repaired.setdefault("meta", {})
        if "schema_version" not in meta:
            meta["schema_version"] = 1
            repairs.append("Added meta.schema_version = 1")
        if "created_at" not in meta:
            meta["created_at"] = now
            repairs.append(f"Added meta.created_at = {now}")
        if "last_updated" not in meta:
            meta["last_updated"] = meta["created_at"]
            repairs.append(f"Added meta.last_updated = {meta['created_at']}")

        # Capacities: coerce, then clamp into [0, 10]
        capacities = repaired.get("capacities")
        if isinstance(capacities, dict):
            lo, hi = config.profile.capacity_min, config.profile.capacity_max
            for key in CAPACITY_KEYS:
                value = capacities.get(key)
                if isinstance(value, str):
                    try:
                        coerced = float(value)
                    except ValueError:
                        continue
                    capacities[key] = coerced
                    repairs.append(f"Coerced capacities.{key}: '{value}' -> {coerced}")
                    value = coerced
                if isinstance(value, (int, float)) and not lo <= value <= hi:
                    clamped = max(lo, min(hi, float(value)))
                    capacities[key] = clamped
                    repairs.append(f"Clamped capacities.{key}: {value} -> {clamped}")

        # Challenge areas: known values, first occurrence wins, never empty
        areas = repaired.get("challenge_areas")
        if isinstance(areas, list):
            allowed = self.schema["definitions"]["challenge_area"]["enum"]
            cleaned = []
            for area in areas:
                if area in allowed and area not in cleaned:
                    cleaned.append(area)
            if not cleaned:
                cleaned = list(DEFAULT_CHALLENGE_AREAS)
            if cleaned != areas:
                repaired["challenge_areas"] = cleaned
                repairs.append(f"Normalised challenge_areas: {areas} -> {cleaned}")

        return repaired, repairs


@lru_cache(maxsize=None)
def schema_validator(schema_name: str) -> SchemaValidator:
    """Cached validator for one of the bundled schemas."""
    if schema_name == PROFILE_SCHEMA:
        return ProfileValidator()
    return SchemaValidator(config.paths.schemas_dir / schema_name)


def validate_profile(data: dict, auto_repair: bool = False) -> ValidationResult:
    """
    Quick validation of profile data.

    Example:
        result = validate_profile(profile_dict, auto_repair=True)
        if result:
            profile_dict = result.data
        else:
            print("Errors:", result.errors)
    """
    return schema_validator(PROFILE_SCHEMA).validate(data, auto_repair=auto_repair)
