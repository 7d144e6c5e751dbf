"""
Input validation schemas for API parameters.
Provides strict validation for all user inputs to prevent invalid data and security issues.
"""

import re

from pydantic import BaseModel, Field, field_validator


# Display names: letters, digits, spaces and a little punctuation
APP_NAME_PATTERN = re.compile(r"^[\w][\w \-\.&']{0,79}$", re.UNICODE)


class AppNameParam(BaseModel):
    """Validated app display name."""

    app_name: str = Field(..., min_length=1, max_length=80, description="App display name")

    @field_validator("app_name")
    @classmethod
    def validate_app_name(cls, v: str) -> str:
        """Validate app name format - trimmed, no markup or path characters."""
        v = v.strip()
        if not v:
            raise ValueError("App name cannot be empty")
        if not APP_NAME_PATTERN.match(v):
            raise ValueError(
                f"Invalid app name: '{v}'. "
                "Must be 1-80 characters: letters, digits, spaces, '-', '.', '&' or apostrophes."
            )
        return v

