"""Offline format checks for provider API keys."""

import logging
import re
from typing import Any

from model_keys.key_storage.models import ProviderField

# Well-known key prefixes. A mismatch is reported as a warning only, since
# providers change key formats without notice.
KEY_PATTERNS: dict[ProviderField, re.Pattern[str]] = {
    ProviderField.VALUE: re.compile(r"^sk-ant-[a-zA-Z0-9_-]{20,}$"),
    ProviderField.OPENAI: re.compile(r"^sk-[a-zA-Z0-9_-]{20,}$"),
    ProviderField.XAI: re.compile(r"^xai-[a-zA-Z0-9_-]{20,}$"),
    ProviderField.GOOGLE: re.compile(r"^AIza[a-zA-Z0-9_-]{30,}$"),
    ProviderField.OPENROUTER: re.compile(r"^sk-or-[a-zA-Z0-9_-]{20,}$"),
}

PLACEHOLDER_PATTERNS = [
    "your_api_key_here",
    "sk-example",
    "sk-test",
    "placeholder",
    "xxxxxxxx",
]


class APIKeyValidator:
    """Checks keys for copy-paste mistakes before they are sent anywhere."""

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)
        self.min_length = 20

    def is_valid_format(self, field: ProviderField, api_key: Any) -> bool:
        """Check if API key matches the provider's known format.

        Args:
            field: The record field the key is meant for
            api_key: The API key to check

        Returns:
            True if the key format is valid, False otherwise
        """
        if not api_key or not isinstance(api_key, str):
            return False

        if api_key != api_key.strip():
            return False

        return KEY_PATTERNS[field].match(api_key) is not None

    def mask_api_key(self, api_key: str, show_chars: int = 4) -> str:
        """Mask API key for safe display.

        Args:
            api_key: The API key to mask
            show_chars: Number of characters to show at start and end

        Returns:
            Masked API key string
        """
        if not api_key or len(api_key) <= (show_chars * 2):
            return "***invalid***"

        start = api_key[:show_chars]
        end = api_key[-show_chars:]
        middle_length = min(len(api_key) - (show_chars * 2), 32)

        return f"{start}{'*' * middle_length}{end}"

    def check_common_issues(self, api_key: str) -> list[str]:
        """Check for common API key issues.

        Args:
            api_key: The API key to check

        Returns:
            List of identified issues
        """
        issues = []

        if not api_key or not api_key.strip():
            issues.append("API key is empty")
            return issues

        if (api_key.startswith('"') and api_key.endswith('"')) or (
            api_key.startswith("'") and api_key.endswith("'")
        ):
            issues.append("API key appears to have quotes around it")

        if " " in api_key.strip():
            issues.append("API key contains spaces")

        if "\n" in api_key or "\r" in api_key:
            issues.append("API key contains line breaks")

        if api_key != api_key.strip():
            issues.append("API key has leading or trailing whitespace")

        api_key_lower = api_key.lower()
        if any(pattern in api_key_lower for pattern in PLACEHOLDER_PATTERNS):
            issues.append("API key appears to be a placeholder or example")

        if len(api_key.strip()) < self.min_length:
            issues.append("API key is unusually short - ensure it's complete")

        return issues

    def format_report(
        self, field: ProviderField, api_key: str
    ) -> tuple[bool, list[str]]:
        """Summarize the offline checks for one key.

        Returns:
            Tuple of (matches_known_format, warnings)
        """
        warnings = self.check_common_issues(api_key)
        matches = self.is_valid_format(field, api_key.strip())
        if not matches and api_key.strip():
            warnings.append(
                f"API key does not match the usual {field.value} key format"
            )
        return matches, warnings
