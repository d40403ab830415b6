"""Key record storage and retrieval service with multiple backend support."""

import asyncio
import logging
import os
import platform
from enum import Enum
from pathlib import Path
from typing import Any

import keyring
from keyring.errors import KeyringError, PasswordDeleteError
from pydantic import ValidationError

from model_keys.config import KEY_STORE_DIR
from model_keys.key_storage.errors import StorageUnavailable
from model_keys.key_storage.models import KeyPreference, StoredKeyRecord
from model_keys.key_storage.requirements import has_any_key_set
from model_keys.key_storage.storage_fallback import EncryptedFileStorage
from model_keys.key_storage.validation import APIKeyValidator


class StorageMethod(Enum):
    """Available storage methods in priority order."""

    KEYCHAIN = "keychain"
    ENCRYPTED_FILE = "encrypted_file"
    NOT_FOUND = "not_found"


class KeyRecordManager:
    """Manages the key record with multiple backend support.

    Priority order: OS keychain → encrypted file. The keychain entry holds the
    record as JSON. The encrypted file lives in ``KEY_STORE_DIR`` when set,
    otherwise in the platform's user data directory.
    """

    SERVICE_NAME = "model-keys"
    ACCOUNT_NAME = "provider-key-record"

    def __init__(self, app_name: str = "model-keys", data_dir: Path | None = None):
        self.app_name = app_name
        self.logger = logging.getLogger(__name__)
        self.validator = APIKeyValidator()
        if data_dir is None and KEY_STORE_DIR:
            data_dir = Path(KEY_STORE_DIR)
        self._data_dir = data_dir
        self._encrypted_storage: EncryptedFileStorage | None = None

    @property
    def encrypted_storage(self) -> EncryptedFileStorage:
        """Lazy initialization of encrypted storage."""
        if self._encrypted_storage is None:
            self._encrypted_storage = EncryptedFileStorage(
                self._data_dir or self._get_user_data_dir()
            )
        return self._encrypted_storage

    def _get_user_data_dir(self) -> Path:
        """Get platform-appropriate user data directory."""
        system = platform.system()

        if system == "Darwin":  # macOS
            base_dir = Path.home() / "Library" / "Application Support"
        elif system == "Windows":
            base_dir = Path(
                os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming")
            )
        else:  # Linux and others
            base_dir = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))

        return base_dir / self.app_name

    def _get_from_keychain(self) -> StoredKeyRecord | None:
        payload = keyring.get_password(self.SERVICE_NAME, self.ACCOUNT_NAME)
        if not payload:
            return None
        return StoredKeyRecord.model_validate_json(payload)

    def get_record(self) -> tuple[StoredKeyRecord | None, StorageMethod]:
        """Retrieve the key record using priority order: keychain → encrypted_file.

        Returns:
            Tuple of (record, storage_method) where record is None if not found.
        """
        try:
            record = self._get_from_keychain()
            if record is not None:
                self.logger.info("Key record loaded from OS keychain")
                return record, StorageMethod.KEYCHAIN
        except KeyringError as e:
            self.logger.warning(f"Could not access OS keychain: {e}")
        except ValidationError as e:
            self.logger.warning(f"Unreadable key record in OS keychain: {e}")

        try:
            record = self.encrypted_storage.get_record()
            if record is not None:
                self.logger.info("Key record loaded from encrypted file storage")
                return record, StorageMethod.ENCRYPTED_FILE
        except (OSError, ValidationError) as e:
            self.logger.error(f"Error reading from encrypted file storage: {e}")

        self.logger.info("No key record found in any storage location")
        return None, StorageMethod.NOT_FOUND

    def store_record(
        self, record: StoredKeyRecord
    ) -> tuple[bool, StorageMethod, str | None]:
        """Store the key record in the keychain, falling back to encrypted file.

        A record with no keys and the default preference is not stored at all;
        any existing entry is deleted instead, since an absent record reads
        back as the same thing.

        Args:
            record: The record to store; blank key fields are dropped

        Returns:
            Tuple of (success, actual_method_used, error_message)
        """
        record = record.normalized()

        if (
            not has_any_key_set(record)
            and record.preference == KeyPreference.QUOTA_EXHAUSTED
        ):
            deleted, message = self.delete_record()
            if not deleted:
                return False, StorageMethod.NOT_FOUND, message
            self.logger.info(f"Key record is empty: {message}")
            return True, StorageMethod.NOT_FOUND, None

        success, error = self._store_in_keychain(record)
        if success:
            # A stale file copy would win if the keychain later fails
            self.encrypted_storage.delete_record()
            return True, StorageMethod.KEYCHAIN, None
        self.logger.warning(f"Keychain storage failed: {error}")

        try:
            self.encrypted_storage.store_record(record)
            return True, StorageMethod.ENCRYPTED_FILE, None
        except OSError as e:
            error_msg = f"Encrypted file storage failed: {e}"
            self.logger.error(error_msg)
            return False, StorageMethod.NOT_FOUND, error_msg

    def _store_in_keychain(self, record: StoredKeyRecord) -> tuple[bool, str | None]:
        """Store the record in OS keychain.

        Returns:
            Tuple of (success, error_message)
        """
        try:
            keyring.set_password(
                self.SERVICE_NAME,
                self.ACCOUNT_NAME,
                record.model_dump_json(exclude_none=True),
            )
            self.logger.info("Key record stored in OS keychain")
            return True, None
        except KeyringError as e:
            return False, f"Keyring error: {e}"

    def delete_record(self) -> tuple[bool, str]:
        """Delete the key record from every storage backend.

        Returns:
            Tuple of (success, message) where success means no record remains
        """
        results = []
        errors = []

        try:
            keyring.delete_password(self.SERVICE_NAME, self.ACCOUNT_NAME)
            results.append("Deleted from keychain")
            self.logger.info("Key record deleted from OS keychain")
        except PasswordDeleteError:
            pass  # nothing stored
        except KeyringError as e:
            errors.append(f"Keychain deletion error: {e}")

        if self.encrypted_storage.delete_record():
            results.append("Deleted from encrypted file")

        if errors:
            self.logger.warning(f"Key record deletion incomplete: {errors[0]}")
            return False, "; ".join(errors)
        if results:
            return True, "; ".join(results)
        return True, "No key record found to delete"

    def get_storage_status(self) -> dict[str, Any]:
        """Get status of key record storage across all methods.

        Returns:
            Dictionary with storage method status information
        """
        status: dict[str, Any] = {
            "keychain": {"available": False, "error": None},
            "encrypted_file": {"available": False, "error": None},
            "current_source": StorageMethod.NOT_FOUND.value,
        }

        try:
            if self._get_from_keychain() is not None:
                status["keychain"]["available"] = True
                status["current_source"] = StorageMethod.KEYCHAIN.value
        except (KeyringError, ValidationError) as e:
            status["keychain"]["error"] = str(e)

        try:
            if self.encrypted_storage.get_record() is not None:
                status["encrypted_file"]["available"] = True
                if status["current_source"] == StorageMethod.NOT_FOUND.value:
                    status["current_source"] = StorageMethod.ENCRYPTED_FILE.value
        except (OSError, ValidationError) as e:
            status["encrypted_file"]["error"] = str(e)

        return status

    def masked_record(self, record: StoredKeyRecord | None) -> dict[str, Any]:
        """Return the record with every key masked for display."""
        record = (record or StoredKeyRecord()).normalized()
        masked: dict[str, Any] = record.model_dump(mode="json")
        for name, key in masked.items():
            if name != "preference" and key is not None:
                masked[name] = self.validator.mask_api_key(key)
        return masked

    async def fetch_record(self) -> StoredKeyRecord | None:
        """Async query used by key validation controllers."""
        record, _ = await asyncio.to_thread(self.get_record)
        return record

    async def persist_record(self, record: StoredKeyRecord) -> None:
        """Async mutation used by key validation controllers.

        Raises:
            StorageUnavailable: If no backend accepted the record
        """
        success, _, error = await asyncio.to_thread(self.store_record, record)
        if not success:
            raise StorageUnavailable(error or "Failed to store key record")
