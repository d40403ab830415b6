"""In-memory key record stores for controller and endpoint tests."""

import asyncio
from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from model_keys.key_storage.key_manager import KeyRecordManager
from model_keys.key_storage.models import StoredKeyRecord


class InMemoryKeyStore:
    """Key record store that keeps every persisted record for inspection."""

    def __init__(
        self,
        record: StoredKeyRecord | None = None,
        fail_with: Exception | None = None,
        delay: float = 0.0,
    ):
        self.record = record
        self.fail_with = fail_with
        self.delay = delay
        self.persisted: list[StoredKeyRecord] = []
        self.fetch_count = 0

    async def fetch_record(self) -> StoredKeyRecord | None:
        self.fetch_count += 1
        return self.record

    async def persist_record(self, record: StoredKeyRecord) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        self.persisted.append(record)
        self.record = record.normalized()


class FakeKeyring:
    """Dictionary-backed stand-in for the keyring module functions."""

    def __init__(self) -> None:
        self.passwords: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, account: str) -> str | None:
        return self.passwords.get((service, account))

    def set_password(self, service: str, account: str, password: str) -> None:
        self.passwords[(service, account)] = password

    def delete_password(self, service: str, account: str) -> None:
        from keyring.errors import PasswordDeleteError

        if (service, account) not in self.passwords:
            raise PasswordDeleteError("Password not found")
        del self.passwords[(service, account)]


@pytest.fixture
def fake_keyring() -> Generator[FakeKeyring, None, None]:
    """Patch keyring access in the key manager with an in-memory keychain."""
    fake = FakeKeyring()
    with (
        patch("keyring.get_password", side_effect=fake.get_password),
        patch("keyring.set_password", side_effect=fake.set_password),
        patch("keyring.delete_password", side_effect=fake.delete_password),
    ):
        yield fake


@pytest.fixture
def key_manager(tmp_path: Path, fake_keyring: FakeKeyring) -> KeyRecordManager:
    """Key record manager using a temporary directory and fake keychain."""
    return KeyRecordManager(data_dir=tmp_path / "model-keys")


@pytest.fixture
def sample_record() -> StoredKeyRecord:
    """A record with an Anthropic and an OpenAI key."""
    return StoredKeyRecord(
        preference="quotaExhausted",
        value="sk-ant-REDACTED",
        openai="sk-proj-abcdefghijklmnopqrstuvwxyz",
    )
