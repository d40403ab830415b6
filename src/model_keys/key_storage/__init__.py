"""Provider key selection, validation, and storage."""

from model_keys.key_storage.controller import (
    KeyRecordStore,
    KeyValidationController,
    ValidationSession,
    ValidationStatus,
)
from model_keys.key_storage.errors import (
    KeyManagementError,
    PersistenceFailed,
    ValidationFailed,
    ValidationRejected,
)
from model_keys.key_storage.models import (
    KeyPreference,
    KeyType,
    ProviderField,
    StoredKeyRecord,
    clean_api_key,
)
from model_keys.key_storage.requirements import (
    ModelSelection,
    has_any_key_set,
    has_usable_key,
    required_field,
)

__all__ = [
    # Key requirements
    "ModelSelection",
    "required_field",
    "has_usable_key",
    "has_any_key_set",
    # Validation controller
    "KeyValidationController",
    "KeyRecordStore",
    "ValidationSession",
    "ValidationStatus",
    # Record
    "StoredKeyRecord",
    "KeyPreference",
    "KeyType",
    "ProviderField",
    "clean_api_key",
    # Errors
    "KeyManagementError",
    "PersistenceFailed",
    "ValidationFailed",
    "ValidationRejected",
]
