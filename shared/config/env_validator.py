"""
Environment Variable Validator

Validates that the settings a service needs from the environment are present
before startup, and provides clear error messages when they are not.
"""

import logging
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Values that were copied from .env.example and never filled in
PLACEHOLDER_PATTERNS = [
    'your-',
    'change-in-production',
    'example.com',
    'yourproject',
]


class EnvValidationError(Exception):
    """Raised when environment validation fails"""
    pass


class EnvValidator:
    """Validates required settings against their resolved values"""

    def __init__(self, required: Dict[str, Tuple[Optional[str], str]]):
        """
        Initialize the validator

        Args:
            required: Mapping of variable name to (current value, description)
        """
        self.required = required
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def check_variable(self, var_name: str, value: Optional[str], description: str) -> bool:
        """
        Check a single required variable

        Returns:
            True if valid, False otherwise
        """
        if value is None or value == '':
            self.errors.append(
                f"❌ Missing required variable: {var_name}\n"
                f"   Description: {description}"
            )
            return False

        if any(pattern in value.lower() for pattern in PLACEHOLDER_PATTERNS):
            self.warnings.append(
                f"⚠️  Variable appears to have placeholder value: {var_name}\n"
                f"   Description: {description}"
            )

        return True

    def validate(self, strict: bool = False) -> bool:
        """
        Run full validation

        Args:
            strict: If True, warnings are treated as errors

        Returns:
            True if validation passes

        Raises:
            EnvValidationError if validation fails
        """
        self.errors = []
        self.warnings = []

        for var_name, (value, description) in self.required.items():
            self.check_variable(var_name, value, description)

        if self.errors or (strict and self.warnings):
            raise EnvValidationError(self._format_error_message())

        for warning in self.warnings:
            logger.warning(warning)

        return True

    def _format_error_message(self) -> str:
        """Format a comprehensive error message"""
        lines = [
            "",
            "="*60,
            "❌ Environment Variable Validation Failed",
            "="*60,
            "",
        ]

        for error in self.errors + self.warnings:
            lines.append(error)
            lines.append("")

        lines.extend([
            "How to fix: set the variables above in your .env file",
            "or in the process environment, then restart.",
            "",
        ])

        return "\n".join(lines)


def validate_env(required: Dict[str, Tuple[Optional[str], str]], strict: bool = False) -> bool:
    """
    Convenience function to validate required settings

    Raises:
        EnvValidationError if validation fails
    """
    return EnvValidator(required).validate(strict=strict)
