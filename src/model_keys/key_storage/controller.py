"""Debounced, asynchronous validation of a key being typed for one provider."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from model_keys.config import KEY_VALIDATION_DEBOUNCE_SECONDS
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
from model_keys.utils.diagnostics import report_error

ValidateFn = Callable[[str], Awaitable[bool]]
ErrorReporter = Callable[[BaseException], None]


class KeyRecordStore(Protocol):
    """Persistence collaborator holding the member's key record."""

    async def fetch_record(self) -> StoredKeyRecord | None: ...

    async def persist_record(self, record: StoredKeyRecord) -> None: ...


class ValidationStatus(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    INVALID = "invalid"
    ERROR = "error"


@dataclass
class ValidationSession:
    """Editing state for one provider field."""

    candidate: str = ""
    debounced_candidate: str = ""
    status: ValidationStatus = ValidationStatus.IDLE
    error: KeyManagementError | None = None


class KeyValidationController:
    """Validates and persists the key typed for a single provider field.

    Every edit bumps a sequence number. Timers and validation calls capture the
    number when they start and drop their result if it has moved on, so the
    visible status always belongs to the latest edit. In-flight validator
    calls are never aborted, only ignored.
    """

    def __init__(
        self,
        field: ProviderField,
        validate: ValidateFn,
        store: KeyRecordStore,
        error_reporter: ErrorReporter = report_error,
        debounce_seconds: float = KEY_VALIDATION_DEBOUNCE_SECONDS,
    ):
        self.field = field
        self.key_type = KeyType.for_field(field)
        self.store = store
        self.debounce_seconds = debounce_seconds
        self.session = ValidationSession()
        self.is_saving = False
        self.logger = logging.getLogger(__name__)
        self._validate = validate
        self._report_error = error_reporter
        self._sequence = 0
        self._timer: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[None]] = set()

    @property
    def candidate(self) -> str:
        return self.session.candidate

    @property
    def status(self) -> ValidationStatus:
        return self.session.status

    @property
    def error(self) -> KeyManagementError | None:
        return self.session.error

    @property
    def error_message(self) -> str | None:
        return str(self.session.error) if self.session.error else None

    @property
    def can_save(self) -> bool:
        """Whether a save action should be offered to the user right now."""
        return (
            not self.is_saving
            and bool(self.session.candidate.strip())
            and self.session.status != ValidationStatus.VALIDATING
        )

    def on_candidate_change(self, raw: str) -> None:
        """Record an edit and restart the debounce window.

        Must be called from a running event loop.
        """
        self._sequence += 1
        self.session.candidate = raw
        self._cancel_timer()

        if not raw.strip():
            self.session.status = ValidationStatus.IDLE
            self.session.error = None
            return

        self._timer = asyncio.create_task(self._debounce(self._sequence, raw))

    def cancel(self) -> None:
        """Abandon the current edit and discard any pending results."""
        self._reset_session()

    async def drain(self) -> None:
        """Wait until no debounce timer or validation call is pending."""
        while True:
            pending = [task for task in self._in_flight if not task.done()]
            if self._timer is not None and not self._timer.done():
                pending.append(self._timer)
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def save(self, record: StoredKeyRecord | None = None) -> StoredKeyRecord:
        """Write the candidate into this controller's field and persist it.

        Args:
            record: The current record, fetched from the store when omitted

        Returns:
            The record as persisted

        Raises:
            PersistenceFailed: If fetching or persisting the record failed
        """
        sequence = self._sequence
        key = clean_api_key(self.session.candidate)
        updated = await self._persist(
            lambda current: current.with_field(self.field, key),
            record,
            failure_message=f"Failed to save {self.key_type.value} API key",
        )
        self.logger.info(f"{self.key_type.label} API key saved")
        if sequence == self._sequence:
            self._reset_session()
        return updated

    async def remove(
        self,
        record: StoredKeyRecord | None = None,
        field: ProviderField | None = None,
    ) -> StoredKeyRecord:
        """Persist the record with ``field`` (default: this controller's) cleared.

        Raises:
            PersistenceFailed: If fetching or persisting the record failed
        """
        field = field or self.field
        key_type = KeyType.for_field(field)
        sequence = self._sequence
        updated = await self._persist(
            lambda current: current.with_field(field, None),
            record,
            failure_message=f"Failed to remove {key_type.value} API key",
        )
        self.logger.info(f"{key_type.label} API key removed")
        if sequence == self._sequence:
            self._reset_session()
        return updated

    async def set_always_use_preference(
        self, value: bool, record: StoredKeyRecord | None = None
    ) -> None:
        """Persist whether user keys are used even while quota remains.

        Callers only offer this when ``has_any_key_set`` holds for the record.

        Raises:
            PersistenceFailed: If fetching or persisting the record failed
        """
        preference = KeyPreference.ALWAYS if value else KeyPreference.QUOTA_EXHAUSTED
        await self._persist(
            lambda current: current.model_copy(update={"preference": preference}),
            record,
            failure_message="Failed to update preference",
        )
        self.logger.info(f"Preference updated to {preference.value}")

    async def _persist(
        self,
        change: Callable[[StoredKeyRecord], StoredKeyRecord],
        record: StoredKeyRecord | None,
        failure_message: str,
    ) -> StoredKeyRecord:
        self.is_saving = True
        try:
            if record is None:
                record = await self.store.fetch_record() or StoredKeyRecord()
            updated = change(record)
            await self.store.persist_record(updated)
            return updated
        except Exception as e:
            self._report_error(e)
            self.logger.error(f"{failure_message}: {type(e).__name__}")
            raise PersistenceFailed(failure_message) from e
        finally:
            self.is_saving = False

    async def _debounce(self, sequence: int, candidate: str) -> None:
        await asyncio.sleep(self.debounce_seconds)
        if sequence != self._sequence:
            return

        # Past this point the task is a validation call, which edits never cancel
        self._timer = None
        self._in_flight.add(asyncio.current_task())  # type: ignore[arg-type]
        try:
            self.session.debounced_candidate = candidate
            await self._run_validation(sequence, candidate)
        finally:
            self._in_flight.discard(asyncio.current_task())  # type: ignore[arg-type]

    async def _run_validation(self, sequence: int, candidate: str) -> None:
        self.session.status = ValidationStatus.VALIDATING
        self.session.error = None

        try:
            is_valid = await self._validate(candidate)
        except Exception as e:
            self._report_error(e)
            if sequence != self._sequence:
                return
            self.session.status = ValidationStatus.ERROR
            self.session.error = ValidationFailed()
            return

        if sequence != self._sequence:
            self.logger.debug(
                f"Discarding stale {self.key_type.value} validation result"
            )
            return

        if is_valid:
            self.session.status = ValidationStatus.IDLE
            self.session.error = None
        else:
            self.session.status = ValidationStatus.INVALID
            self.session.error = ValidationRejected()

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def _reset_session(self) -> None:
        self._sequence += 1
        self._cancel_timer()
        self.session = ValidationSession()
