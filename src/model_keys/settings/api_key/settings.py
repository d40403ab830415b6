"""Starlette endpoints for provider API key management."""

import logging
from collections.abc import Awaitable, Callable

from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from model_keys.config import USE_GEMINI_AUTO
from model_keys.key_storage.controller import (
    KeyValidationController,
    ValidationStatus,
)
from model_keys.key_storage.errors import PersistenceFailed
from model_keys.key_storage.key_manager import KeyRecordManager
from model_keys.key_storage.models import (
    KeyPreference,
    KeyType,
    ProviderField,
    StoredKeyRecord,
)
from model_keys.key_storage.remote_validation import make_validator
from model_keys.key_storage.requirements import (
    has_any_key_set,
    has_usable_key,
    required_field,
)
from model_keys.key_storage.validation import APIKeyValidator
from model_keys.settings.api_key.models import (
    KeyRecordResponse,
    PreferenceRequest,
    ProviderInfo,
    StoreKeyRequest,
    StoreKeyResponse,
    UsableKeyResponse,
    ValidateKeyRequest,
    ValidateKeyResponse,
)
from model_keys.utils.constants import INSTRUCTIONS_URLS, PROVIDER_DESCRIPTIONS

ValidatorFactory = Callable[[ProviderField], Callable[[str], Awaitable[bool]]]


async def _format_only(api_key: str) -> bool:
    return True


class APIKeySettingsHandler:
    """Handles API key management endpoints."""

    def __init__(
        self,
        key_manager: KeyRecordManager | None = None,
        validator_factory: ValidatorFactory = make_validator,
        use_gemini_auto: bool = USE_GEMINI_AUTO,
    ) -> None:
        self.key_manager = key_manager or KeyRecordManager()
        self.validator = APIKeyValidator()
        self.validator_factory = validator_factory
        self.use_gemini_auto = use_gemini_auto
        self.logger = logging.getLogger(__name__)

    def _controller(
        self, field: ProviderField, check_remote: bool = True
    ) -> KeyValidationController:
        # Requests carry the final value, so no debounce window is needed
        validate = self.validator_factory(field) if check_remote else _format_only
        return KeyValidationController(
            field, validate, self.key_manager, debounce_seconds=0.0
        )

    @staticmethod
    def _key_type(request: Request) -> KeyType | None:
        try:
            return KeyType(request.path_params["key_type"])
        except ValueError:
            return None

    def _record_response(self, record: StoredKeyRecord | None) -> KeyRecordResponse:
        providers = [
            ProviderInfo(
                key_type=key_type.value,
                field=key_type.field.value,
                label=key_type.label,
                description=PROVIDER_DESCRIPTIONS[key_type.value],
                instructions_url=INSTRUCTIONS_URLS[key_type.value],
                connected=bool(record and (record.get_field(key_type.field) or "").strip()),
            )
            for key_type in KeyType
        ]
        return KeyRecordResponse(
            record=self.key_manager.masked_record(record),
            has_any_key=has_any_key_set(record),
            always_use=bool(record and record.preference == KeyPreference.ALWAYS),
            providers=providers,
            storage_status=self.key_manager.get_storage_status(),
        )

    async def get_keys(self, request: Request) -> JSONResponse:
        """Get the masked key record and provider information.

        GET /api/keys
        """
        try:
            record = await self.key_manager.fetch_record()
            return JSONResponse(self._record_response(record).model_dump())
        except Exception as e:
            self.logger.error(f"Error getting key record: {e}")
            return JSONResponse({"error": f"Internal error: {str(e)}"}, status_code=500)

    async def store_key(self, request: Request) -> JSONResponse:
        """Save one provider key.

        PUT /api/keys/{key_type}
        """
        key_type = self._key_type(request)
        if key_type is None:
            return JSONResponse({"error": "Unknown key type"}, status_code=404)

        try:
            body = await request.json()
            store_request = StoreKeyRequest(**body)
        except (TypeError, ValueError, ValidationError) as e:
            return JSONResponse(
                {"success": False, "message": f"Invalid request format: {str(e)}"},
                status_code=400,
            )

        _, warnings = self.validator.format_report(key_type.field, store_request.api_key)

        controller = self._controller(key_type.field, check_remote=False)
        controller.on_candidate_change(store_request.api_key)
        try:
            record = await controller.save()
        except PersistenceFailed as e:
            return JSONResponse(
                StoreKeyResponse(success=False, message=str(e)).model_dump(),
                status_code=500,
            )

        response = StoreKeyResponse(
            success=True,
            message=f"{key_type.label} API key saved",
            record=self.key_manager.masked_record(record),
            warnings=warnings if store_request.api_key.strip() and warnings else None,
        )
        return JSONResponse(response.model_dump())

    async def delete_key(self, request: Request) -> JSONResponse:
        """Remove one provider key.

        DELETE /api/keys/{key_type}
        """
        key_type = self._key_type(request)
        if key_type is None:
            return JSONResponse({"error": "Unknown key type"}, status_code=404)

        controller = self._controller(key_type.field, check_remote=False)
        try:
            record = await controller.remove()
        except PersistenceFailed as e:
            return JSONResponse(
                StoreKeyResponse(success=False, message=str(e)).model_dump(),
                status_code=500,
            )

        response = StoreKeyResponse(
            success=True,
            message=f"{key_type.label} API key removed",
            record=self.key_manager.masked_record(record),
        )
        return JSONResponse(response.model_dump())

    async def update_preference(self, request: Request) -> JSONResponse:
        """Set whether stored keys are always used.

        PUT /api/keys/preference
        """
        try:
            body = await request.json()
            preference_request = PreferenceRequest(**body)
        except (TypeError, ValueError, ValidationError) as e:
            return JSONResponse(
                {"success": False, "message": f"Invalid request format: {str(e)}"},
                status_code=400,
            )

        try:
            record = await self.key_manager.fetch_record()
        except Exception as e:
            self.logger.error(f"Error reading key record: {e}")
            return JSONResponse(
                {"success": False, "message": "Failed to update preference"},
                status_code=500,
            )

        if not has_any_key_set(record):
            return JSONResponse(
                {
                    "success": False,
                    "message": "You cannot use this setting when you don't have any API keys configured.",
                },
                status_code=409,
            )

        controller = self._controller(ProviderField.VALUE, check_remote=False)
        try:
            await controller.set_always_use_preference(
                preference_request.always_use, record
            )
        except PersistenceFailed as e:
            return JSONResponse(
                {"success": False, "message": str(e)}, status_code=500
            )

        return JSONResponse({"success": True, "message": "Preference updated."})

    async def validate_key(self, request: Request) -> JSONResponse:
        """Validate a provider key without storing it.

        POST /api/keys/{key_type}/validate
        """
        key_type = self._key_type(request)
        if key_type is None:
            return JSONResponse({"error": "Unknown key type"}, status_code=404)

        try:
            body = await request.json()
            validate_request = ValidateKeyRequest(**body)
        except (TypeError, ValueError, ValidationError) as e:
            return JSONResponse(
                {"error": f"Invalid request format: {str(e)}"}, status_code=400
            )

        format_valid, warnings = self.validator.format_report(
            key_type.field, validate_request.api_key
        )

        controller = self._controller(key_type.field, validate_request.check_remote)
        controller.on_candidate_change(validate_request.api_key)
        await controller.drain()

        response = ValidateKeyResponse(
            status=controller.status.value,
            format_valid=format_valid,
            error_message=controller.error_message,
            warnings=warnings or None,
            instructions_url=INSTRUCTIONS_URLS[key_type.value],
        )
        status_code = 502 if controller.status == ValidationStatus.ERROR else 200
        return JSONResponse(response.model_dump(), status_code=status_code)

    async def check_usable_key(self, request: Request) -> JSONResponse:
        """Check whether the stored keys can serve a model.

        GET /api/keys/usable?model=...&use_gemini_auto=...
        """
        model = request.query_params.get("model")
        if not model:
            return JSONResponse({"error": "model is required"}, status_code=400)

        use_gemini_auto = self.use_gemini_auto
        if "use_gemini_auto" in request.query_params:
            use_gemini_auto = request.query_params["use_gemini_auto"].lower() in (
                "1",
                "true",
                "yes",
            )

        try:
            field = required_field(model, use_gemini_auto)
        except ValueError:
            return JSONResponse({"error": f"Unknown model: {model}"}, status_code=400)

        try:
            record = await self.key_manager.fetch_record()
        except Exception as e:
            self.logger.error(f"Error reading key record: {e}")
            return JSONResponse({"error": f"Internal error: {str(e)}"}, status_code=500)

        response = UsableKeyResponse(
            model=model,
            required_field=field.value,
            usable=has_usable_key(model, use_gemini_auto, record),
        )
        return JSONResponse(response.model_dump())


def create_api_key_routes(handler: APIKeySettingsHandler | None = None) -> list[Route]:
    """Create API key management routes.

    Returns:
        List of Route objects for API key management
    """
    handler = handler or APIKeySettingsHandler()

    return [
        Route("/api/keys", handler.get_keys, methods=["GET"]),
        Route("/api/keys/usable", handler.check_usable_key, methods=["GET"]),
        Route("/api/keys/preference", handler.update_preference, methods=["PUT"]),
        Route("/api/keys/{key_type}", handler.store_key, methods=["PUT"]),
        Route("/api/keys/{key_type}", handler.delete_key, methods=["DELETE"]),
        Route(
            "/api/keys/{key_type}/validate", handler.validate_key, methods=["POST"]
        ),
    ]
