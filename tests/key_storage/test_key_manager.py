"""Tests for key record storage and retrieval service."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from keyring.errors import KeyringError

from model_keys.key_storage.errors import StorageUnavailable
from model_keys.key_storage.key_manager import KeyRecordManager, StorageMethod
from model_keys.key_storage.models import KeyPreference, StoredKeyRecord
from tests.fixtures.key_stores import FakeKeyring

KEYCHAIN_ENTRY = (KeyRecordManager.SERVICE_NAME, KeyRecordManager.ACCOUNT_NAME)


class TestKeyRecordManager:
    """Test cases for KeyRecordManager."""

    def test_user_data_dir_platform_specific(self) -> None:
        """Test platform-specific user data directory selection."""
        manager = KeyRecordManager()

        with patch("platform.system") as mock_system:
            mock_system.return_value = "Darwin"
            with patch("pathlib.Path.home") as mock_home:
                mock_home.return_value = Path("/Users/test")
                assert "Library/Application Support" in str(manager._get_user_data_dir())

            mock_system.return_value = "Windows"
            with patch.dict(os.environ, {"APPDATA": "/Users/test/AppData/Roaming"}):
                assert "AppData" in str(manager._get_user_data_dir())

            mock_system.return_value = "Linux"
            with patch.dict(os.environ, {"XDG_CONFIG_HOME": "/home/test/.config"}):
                data_dir = manager._get_user_data_dir()
                assert data_dir == Path("/home/test/.config/model-keys")

    def test_key_store_dir_override(self, tmp_path: Path) -> None:
        """Test that a configured store directory replaces the platform default."""
        with patch(
            "model_keys.key_storage.key_manager.KEY_STORE_DIR", str(tmp_path / "keys")
        ):
            manager = KeyRecordManager()

        assert manager.encrypted_storage.app_data_dir == tmp_path / "keys"

    def test_no_record(self, key_manager: KeyRecordManager) -> None:
        """Test when no record is stored anywhere."""
        record, source = key_manager.get_record()
        assert record is None
        assert source == StorageMethod.NOT_FOUND

    def test_store_in_keychain(
        self,
        key_manager: KeyRecordManager,
        fake_keyring: FakeKeyring,
        sample_record: StoredKeyRecord,
    ) -> None:
        """Test storing the record in the keychain as JSON."""
        success, method, error = key_manager.store_record(sample_record)

        assert success
        assert method == StorageMethod.KEYCHAIN
        assert error is None
        payload = fake_keyring.passwords[KEYCHAIN_ENTRY]
        assert StoredKeyRecord.model_validate_json(payload) == sample_record

        record, source = key_manager.get_record()
        assert record == sample_record
        assert source == StorageMethod.KEYCHAIN

    def test_store_normalizes_blank_fields(
        self, key_manager: KeyRecordManager
    ) -> None:
        """Test that blank keys are stored as absent."""
        key_manager.store_record(StoredKeyRecord(openai="sk-a", xai="   "))

        record, _ = key_manager.get_record()
        assert record is not None
        assert record.xai is None
        assert record.openai == "sk-a"

    def test_keychain_failure_falls_back_to_file(
        self, key_manager: KeyRecordManager, sample_record: StoredKeyRecord
    ) -> None:
        """Test fallback to encrypted file when keychain fails."""
        with (
            patch("keyring.set_password", side_effect=KeyringError("Access denied")),
            patch("keyring.get_password", side_effect=KeyringError("Access denied")),
        ):
            success, method, error = key_manager.store_record(sample_record)

            assert success
            assert method == StorageMethod.ENCRYPTED_FILE
            assert error is None

            record, source = key_manager.get_record()
            assert record == sample_record
            assert source == StorageMethod.ENCRYPTED_FILE

    def test_keychain_takes_priority(
        self, key_manager: KeyRecordManager, fake_keyring: FakeKeyring
    ) -> None:
        """Test that the keychain record wins over the file record."""
        key_manager.encrypted_storage.store_record(StoredKeyRecord(openai="sk-file"))
        fake_keyring.set_password(
            *KEYCHAIN_ENTRY, StoredKeyRecord(openai="sk-keychain").model_dump_json()
        )

        record, source = key_manager.get_record()
        assert record is not None
        assert record.openai == "sk-keychain"
        assert source == StorageMethod.KEYCHAIN

    def test_keychain_store_removes_stale_file_copy(
        self, key_manager: KeyRecordManager
    ) -> None:
        """Test that a keychain write clears the fallback file record."""
        key_manager.encrypted_storage.store_record(StoredKeyRecord(openai="sk-old"))

        key_manager.store_record(StoredKeyRecord(openai="sk-new"))

        assert key_manager.encrypted_storage.get_record() is None

    def test_unreadable_keychain_entry(
        self, key_manager: KeyRecordManager, fake_keyring: FakeKeyring
    ) -> None:
        """Test that a corrupt keychain entry falls through to the file."""
        fake_keyring.set_password(*KEYCHAIN_ENTRY, "not json")
        key_manager.encrypted_storage.store_record(StoredKeyRecord(xai="xai-file"))

        record, source = key_manager.get_record()
        assert record is not None
        assert record.xai == "xai-file"
        assert source == StorageMethod.ENCRYPTED_FILE

    def test_delete_record(
        self,
        key_manager: KeyRecordManager,
        fake_keyring: FakeKeyring,
        sample_record: StoredKeyRecord,
    ) -> None:
        """Test deleting the record from every backend."""
        key_manager.store_record(sample_record)

        success, message = key_manager.delete_record()

        assert success
        assert "keychain" in message
        assert KEYCHAIN_ENTRY not in fake_keyring.passwords
        assert key_manager.get_record() == (None, StorageMethod.NOT_FOUND)

    def test_delete_missing_record(self, key_manager: KeyRecordManager) -> None:
        """Test deleting when nothing is stored."""
        success, message = key_manager.delete_record()
        assert success
        assert message == "No key record found to delete"

    def test_delete_keychain_error(
        self, key_manager: KeyRecordManager, sample_record: StoredKeyRecord
    ) -> None:
        """Test that a keychain that refuses deletion is reported as failure."""
        key_manager.store_record(sample_record)

        with patch("keyring.delete_password", side_effect=KeyringError("Locked")):
            success, message = key_manager.delete_record()

        assert not success
        assert "Locked" in message

    def test_empty_record_drops_stored_entry(
        self,
        key_manager: KeyRecordManager,
        fake_keyring: FakeKeyring,
        sample_record: StoredKeyRecord,
    ) -> None:
        """Test that clearing the last key removes the entry instead of storing it."""
        key_manager.store_record(sample_record)

        success, method, error = key_manager.store_record(
            StoredKeyRecord(value="  ", openai=None)
        )

        assert success
        assert method == StorageMethod.NOT_FOUND
        assert error is None
        assert KEYCHAIN_ENTRY not in fake_keyring.passwords
        assert key_manager.get_record() == (None, StorageMethod.NOT_FOUND)

    def test_empty_record_clears_file_copy(self, key_manager: KeyRecordManager) -> None:
        """Test that an empty record also removes an encrypted file copy."""
        key_manager.encrypted_storage.store_record(StoredKeyRecord(xai="xai-file"))

        success, _, _ = key_manager.store_record(StoredKeyRecord())

        assert success
        assert key_manager.encrypted_storage.get_record() is None

    def test_preference_only_record_is_kept(
        self, key_manager: KeyRecordManager, fake_keyring: FakeKeyring
    ) -> None:
        """Test that a non-default preference is stored even without keys."""
        success, method, _ = key_manager.store_record(
            StoredKeyRecord(preference=KeyPreference.ALWAYS)
        )

        assert success
        assert method == StorageMethod.KEYCHAIN
        assert KEYCHAIN_ENTRY in fake_keyring.passwords

    def test_empty_record_fails_when_keychain_refuses_deletion(
        self, key_manager: KeyRecordManager, sample_record: StoredKeyRecord
    ) -> None:
        """Test that stale keys left in the keychain fail the store."""
        key_manager.store_record(sample_record)

        with patch("keyring.delete_password", side_effect=KeyringError("Locked")):
            success, method, error = key_manager.store_record(StoredKeyRecord())

        assert not success
        assert method == StorageMethod.NOT_FOUND
        assert error is not None and "Locked" in error

    def test_storage_status(
        self, key_manager: KeyRecordManager, sample_record: StoredKeyRecord
    ) -> None:
        """Test storage status reporting."""
        status = key_manager.get_storage_status()
        assert status["current_source"] == "not_found"

        key_manager.store_record(sample_record)

        status = key_manager.get_storage_status()
        assert status["current_source"] == "keychain"
        assert status["keychain"]["available"]
        assert not status["encrypted_file"]["available"]

    def test_masked_record(
        self, key_manager: KeyRecordManager, sample_record: StoredKeyRecord
    ) -> None:
        """Test that masked records never expose full keys."""
        masked = key_manager.masked_record(sample_record)

        assert masked["preference"] == "quotaExhausted"
        assert masked["value"] != sample_record.value
        assert masked["value"].startswith("sk-a")
        assert masked["xai"] is None

        empty = key_manager.masked_record(None)
        assert empty["preference"] == "quotaExhausted"
        assert empty["openai"] is None


class TestKeyRecordManagerAsync:
    """Test cases for the async store interface."""

    async def test_persist_and_fetch(
        self, key_manager: KeyRecordManager, sample_record: StoredKeyRecord
    ) -> None:
        """Test the round trip used by validation controllers."""
        updated = sample_record.model_copy(update={"preference": KeyPreference.ALWAYS})

        await key_manager.persist_record(updated)

        assert await key_manager.fetch_record() == updated

    async def test_persist_failure_raises(
        self, key_manager: KeyRecordManager, sample_record: StoredKeyRecord
    ) -> None:
        """Test that a failed write on every backend raises."""
        with (
            patch("keyring.set_password", side_effect=KeyringError("locked")),
            patch.object(
                key_manager.encrypted_storage,
                "store_record",
                side_effect=OSError("read-only file system"),
            ),
        ):
            with pytest.raises(StorageUnavailable, match="read-only"):
                await key_manager.persist_record(sample_record)
