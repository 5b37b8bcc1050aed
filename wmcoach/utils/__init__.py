"""
Utility modules for the working-memory coach.

- validation: JSON Schema validation with auto-repair
- progress: score analytics over a profile's history
- content_load: working-memory load of learning content
"""

from .validation import ProfileValidator, SchemaValidator, ValidationResult, validate_profile
from .content_load import ContentLoad, assess_content_load, count_syllables

__all__ = [
    "ProfileValidator",
    "SchemaValidator",
    "ValidationResult",
    "validate_profile",
    "ContentLoad",
    "assess_content_load",
    "count_syllables",
]
