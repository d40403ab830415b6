"""Pydantic models for API key management."""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class StoreKeyRequest(BaseModel):
    """Request model for saving a provider key."""

    api_key: str = Field(..., description="The API key to store; blank removes it")


class StoreKeyResponse(BaseModel):
    """Response model for save and remove operations."""

    success: bool
    message: str
    record: dict[str, Any] | None = None
    warnings: list[str] | None = None


class ProviderInfo(BaseModel):
    """Display information for one provider key slot."""

    key_type: str
    field: str
    label: str
    description: str
    instructions_url: str
    connected: bool


class KeyRecordResponse(BaseModel):
    """Response model for the masked key record."""

    record: dict[str, Any]
    has_any_key: bool
    always_use: bool
    providers: list[ProviderInfo]
    storage_status: dict[str, Any]


class PreferenceRequest(BaseModel):
    """Request model for the always-use-my-keys toggle."""

    always_use: bool


class ValidateKeyRequest(BaseModel):
    """Request model for key validation."""

    api_key: str = Field(..., description="The API key to validate")
    check_remote: bool = Field(
        True, description="Also ask the provider whether it accepts the key"
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Reject keys that are blank once whitespace is removed."""
        if not v.strip():
            raise ValueError("API key must not be blank")
        return v


class ValidateKeyResponse(BaseModel):
    """Response model for key validation."""

    status: str
    format_valid: bool
    error_message: str | None = None
    warnings: list[str] | None = None
    instructions_url: str


class UsableKeyResponse(BaseModel):
    """Response model for the model key requirement check."""

    model: str
    required_field: str
    usable: bool
