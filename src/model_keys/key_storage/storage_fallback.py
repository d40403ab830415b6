"""Encrypted file storage fallback for the key record."""

import json
import logging
import os
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken

from model_keys.key_storage.models import StoredKeyRecord

CONFIG_ENCRYPTED_RECORD = "encrypted_key_record"


class EncryptedFileStorage:
    """Encrypted file-based storage for the key record as a fallback option."""

    def __init__(self, app_data_dir: Path):
        """Initialize encrypted file storage.

        Args:
            app_data_dir: Directory for application data
        """
        self.app_data_dir = Path(app_data_dir)
        self.config_file = self.app_data_dir / "config.json"
        self.key_file = self.app_data_dir / ".encryption_key"
        self.logger = logging.getLogger(__name__)

        self._ensure_app_data_dir()

    def _ensure_app_data_dir(self) -> None:
        """Ensure the app data directory exists with proper permissions."""
        if not self.app_data_dir.exists():
            self.app_data_dir.mkdir(parents=True, exist_ok=True)
            try:
                os.chmod(self.app_data_dir, 0o700)
            except OSError as e:
                self.logger.warning(f"Could not set directory permissions: {e}")

    def _get_encryption_key(self) -> bytes:
        """Get or create encryption key for this installation.

        Returns:
            Encryption key as bytes
        """
        if self.key_file.exists():
            try:
                key = self.key_file.read_bytes()
                Fernet(key)  # raises if the stored key is malformed
                return key
            except (OSError, ValueError) as e:
                self.logger.warning(
                    f"Invalid encryption key found, generating new one: {e}"
                )

        key = Fernet.generate_key()
        try:
            self.key_file.write_bytes(key)
            os.chmod(self.key_file, 0o600)
            self.logger.info("Generated new encryption key")
        except OSError as e:
            self.logger.error(f"Could not save encryption key: {e}")
            raise

        return key

    def _read_config(self) -> dict[str, str]:
        if not self.config_file.exists():
            return {}
        with open(self.config_file) as f:
            config_data: dict[str, str] = json.load(f)
        return config_data

    def _write_config(self, config_data: dict[str, str]) -> None:
        with open(self.config_file, "w") as f:
            json.dump(config_data, f, indent=2)
        os.chmod(self.config_file, 0o600)

    def store_record(self, record: StoredKeyRecord) -> None:
        """Store the key record in the encrypted file.

        Args:
            record: The record to store; blank fields are dropped

        Raises:
            OSError: If the file cannot be written
        """
        fernet = Fernet(self._get_encryption_key())
        payload = record.normalized().model_dump_json(exclude_none=True)
        encrypted = fernet.encrypt(payload.encode("utf-8"))

        try:
            config_data = self._read_config()
        except json.JSONDecodeError as e:
            self.logger.warning(f"Replacing unreadable config file: {e}")
            config_data = {}

        config_data[CONFIG_ENCRYPTED_RECORD] = encrypted.decode("utf-8")

        try:
            self._write_config(config_data)
        except OSError as e:
            self.logger.error(f"Failed to store key record in encrypted file: {e}")
            raise

        self.logger.info("Key record stored in encrypted file")

    def get_record(self) -> StoredKeyRecord | None:
        """Retrieve the key record from the encrypted file.

        Returns:
            Decrypted record or None if not found/unreadable
        """
        try:
            config_data = self._read_config()
        except json.JSONDecodeError as e:
            self.logger.error(f"Invalid JSON in config file: {e}")
            return None

        if CONFIG_ENCRYPTED_RECORD not in config_data:
            return None

        fernet = Fernet(self._get_encryption_key())
        try:
            decrypted = fernet.decrypt(config_data[CONFIG_ENCRYPTED_RECORD].encode())
        except InvalidToken:
            # Key file was regenerated or the payload was tampered with
            self.logger.error("Failed to decrypt key record")
            return None

        self.logger.debug("Key record retrieved from encrypted file")
        return StoredKeyRecord.model_validate_json(decrypted)

    def delete_record(self) -> bool:
        """Delete the stored record while preserving the rest of the config file.

        Returns:
            True if a record was deleted, False if none existed
        """
        deleted = False

        try:
            config_data = self._read_config()
            if CONFIG_ENCRYPTED_RECORD in config_data:
                del config_data[CONFIG_ENCRYPTED_RECORD]
                self._write_config(config_data)
                deleted = True
                self.logger.info("Removed key record from config file")
        except (json.JSONDecodeError, OSError) as e:
            self.logger.error(f"Could not modify config file: {e}")

        # The encryption key only protects the record
        if self.key_file.exists():
            try:
                self.key_file.unlink()
                self.logger.info("Deleted encryption key file")
            except OSError as e:
                self.logger.error(f"Could not delete key file: {e}")

        return deleted
