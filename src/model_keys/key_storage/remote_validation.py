"""Check provider API keys against the providers themselves."""

import logging
from collections.abc import Awaitable, Callable

from model_keys.config import KEY_VALIDATION_TIMEOUT_SECONDS
from model_keys.key_storage.models import ProviderField
from model_keys.utils.constants import (
    ANTHROPIC_API_VERSION,
    ANTHROPIC_MODELS_ENDPOINT,
    GOOGLE_MODELS_ENDPOINT,
    OPENAI_MODELS_ENDPOINT,
    OPENROUTER_KEY_ENDPOINT,
    XAI_MODELS_ENDPOINT,
)
from model_keys.utils.http_client import make_api_request

logger = logging.getLogger(__name__)


def _request_for(
    field: ProviderField, api_key: str
) -> tuple[str, dict[str, str]]:
    """Build (url, headers) for a cheap authenticated call.

    Keys always travel in headers; request URLs are logged by httpx.
    """
    bearer = {"Authorization": f"Bearer {api_key}"}

    if field == ProviderField.VALUE:
        return (
            ANTHROPIC_MODELS_ENDPOINT,
            {"x-api-key": api_key, "anthropic-version": ANTHROPIC_API_VERSION},
        )
    if field == ProviderField.OPENAI:
        return OPENAI_MODELS_ENDPOINT, bearer
    if field == ProviderField.XAI:
        return XAI_MODELS_ENDPOINT, bearer
    if field == ProviderField.GOOGLE:
        return GOOGLE_MODELS_ENDPOINT, {"x-goog-api-key": api_key}
    if field == ProviderField.OPENROUTER:
        return OPENROUTER_KEY_ENDPOINT, bearer
    raise ValueError(f"Unsupported provider field: {field}")


async def validate_provider_key(
    field: ProviderField,
    api_key: str,
    timeout: float = KEY_VALIDATION_TIMEOUT_SECONDS,
) -> bool:
    """Ask the provider whether ``api_key`` is accepted.

    Args:
        field: The record field the key is meant for
        api_key: The candidate key
        timeout: Request timeout in seconds

    Returns:
        True if the provider accepted the key (rate limiting counts as
        accepted), False if it was refused

    Raises:
        httpx.HTTPError: If the provider could not be reached
    """
    url, headers = _request_for(field, api_key.strip())
    response = await make_api_request(url, headers=headers, timeout=timeout)

    if response.status_code in (200, 429):
        return True

    if response.status_code not in (401, 403):
        logger.warning(
            f"Unexpected status {response.status_code} validating {field.value} key"
        )
    return False


def make_validator(field: ProviderField) -> Callable[[str], Awaitable[bool]]:
    """Bind ``field`` so the result can back a KeyValidationController."""

    async def validate(api_key: str) -> bool:
        return await validate_provider_key(field, api_key)

    return validate
