"""Pydantic models for the stored provider key record."""

from enum import Enum

from pydantic import BaseModel


class KeyPreference(str, Enum):
    """When user-supplied keys take priority over built-in quota."""

    ALWAYS = "always"
    QUOTA_EXHAUSTED = "quotaExhausted"


class ProviderField(str, Enum):
    """Named key slots on the stored record."""

    VALUE = "value"  # Anthropic
    OPENAI = "openai"
    XAI = "xai"
    GOOGLE = "google"
    OPENROUTER = "openrouter"


class KeyType(str, Enum):
    """User-facing provider names."""

    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    OPENAI = "openai"
    XAI = "xai"
    OPENROUTER = "openrouter"

    @property
    def field(self) -> ProviderField:
        return KEY_TYPE_FIELDS[self]

    @property
    def label(self) -> str:
        return KEY_TYPE_LABELS[self]

    @classmethod
    def for_field(cls, field: ProviderField) -> "KeyType":
        for key_type, key_field in KEY_TYPE_FIELDS.items():
            if key_field == field:
                return key_type
        raise ValueError(f"No key type for field: {field}")


KEY_TYPE_FIELDS: dict[KeyType, ProviderField] = {
    KeyType.ANTHROPIC: ProviderField.VALUE,
    KeyType.GOOGLE: ProviderField.GOOGLE,
    KeyType.OPENAI: ProviderField.OPENAI,
    KeyType.XAI: ProviderField.XAI,
    KeyType.OPENROUTER: ProviderField.OPENROUTER,
}

KEY_TYPE_LABELS: dict[KeyType, str] = {
    KeyType.ANTHROPIC: "Anthropic",
    KeyType.GOOGLE: "Google",
    KeyType.OPENAI: "OpenAI",
    KeyType.XAI: "xAI",
    KeyType.OPENROUTER: "OpenRouter",
}


def clean_api_key(key: str | None) -> str | None:
    """Return None for a missing or blank key, otherwise the key unchanged."""
    if key is None or key.strip() == "":
        return None
    return key


class StoredKeyRecord(BaseModel):
    """A member's provider keys and their usage preference.

    Blank strings are accepted here since records can be written out of band,
    but every persistence path stores the result of ``normalized()``.
    """

    preference: KeyPreference = KeyPreference.QUOTA_EXHAUSTED
    value: str | None = None
    openai: str | None = None
    xai: str | None = None
    google: str | None = None
    openrouter: str | None = None

    def get_field(self, field: ProviderField) -> str | None:
        key: str | None = getattr(self, field.value)
        return key

    def with_field(self, field: ProviderField, key: str | None) -> "StoredKeyRecord":
        """Return a copy with one key field replaced."""
        return self.model_copy(update={field.value: key})

    def normalized(self) -> "StoredKeyRecord":
        """Return a copy where every blank key field is None."""
        return self.model_copy(
            update={
                field.value: clean_api_key(self.get_field(field))
                for field in ProviderField
            }
        )
