"""Decide which stored provider key a model request needs."""

from collections.abc import Mapping
from enum import Enum
from typing import Any, assert_never

from model_keys.key_storage.models import ProviderField, StoredKeyRecord


class ModelSelection(str, Enum):
    """Every model identifier a request can name."""

    AUTO = "auto"
    CLAUDE_3_5_HAIKU = "claude-3-5-haiku"
    CLAUDE_4_SONNET = "claude-4-sonnet"
    CLAUDE_4_5_SONNET = "claude-4.5-sonnet"
    GPT_4_1 = "gpt-4.1"
    GPT_4_1_MINI = "gpt-4.1-mini"
    GPT_5 = "gpt-5"
    GROK_3_MINI = "grok-3-mini"
    GEMINI_2_5_PRO = "gemini-2.5-pro"
    OPENROUTER_CLAUDE_3_5_SONNET = "openrouter/anthropic/claude-3.5-sonnet"
    OPENROUTER_GPT_4_TURBO = "openrouter/openai/gpt-4-turbo"
    OPENROUTER_LLAMA_3_3_70B = "openrouter/meta-llama/llama-3.3-70b-instruct"
    OPENROUTER_GEMINI_2_0_FLASH = "openrouter/google/gemini-2.0-flash-exp"
    OPENROUTER_MISTRAL_LARGE = "openrouter/mistralai/mistral-large"


RecordLike = StoredKeyRecord | Mapping[str, Any]


def required_field(
    model: ModelSelection | str, use_gemini_auto: bool
) -> ProviderField:
    """Return the record field that must hold a key to serve ``model``.

    Args:
        model: A model identifier, as the enum or its string value
        use_gemini_auto: Whether ``auto`` routes to Gemini instead of Claude

    Returns:
        The provider field the model needs

    Raises:
        ValueError: If ``model`` is not a known identifier
    """
    model = ModelSelection(model)

    match model:
        case ModelSelection.AUTO:
            return ProviderField.GOOGLE if use_gemini_auto else ProviderField.VALUE
        case (
            ModelSelection.CLAUDE_3_5_HAIKU
            | ModelSelection.CLAUDE_4_SONNET
            | ModelSelection.CLAUDE_4_5_SONNET
        ):
            return ProviderField.VALUE
        case ModelSelection.GPT_4_1 | ModelSelection.GPT_4_1_MINI | ModelSelection.GPT_5:
            return ProviderField.OPENAI
        case ModelSelection.GROK_3_MINI:
            return ProviderField.XAI
        case ModelSelection.GEMINI_2_5_PRO:
            return ProviderField.GOOGLE
        case (
            ModelSelection.OPENROUTER_CLAUDE_3_5_SONNET
            | ModelSelection.OPENROUTER_GPT_4_TURBO
            | ModelSelection.OPENROUTER_LLAMA_3_3_70B
            | ModelSelection.OPENROUTER_GEMINI_2_0_FLASH
            | ModelSelection.OPENROUTER_MISTRAL_LARGE
        ):
            return ProviderField.OPENROUTER
        case _:
            assert_never(model)


def _as_dict(record: RecordLike) -> dict[str, Any]:
    if isinstance(record, StoredKeyRecord):
        return record.model_dump()
    return dict(record)


def _is_set(key: Any) -> bool:
    return isinstance(key, str) and key.strip() != ""


def has_usable_key(
    model: ModelSelection | str,
    use_gemini_auto: bool,
    record: RecordLike | None,
) -> bool:
    """Check whether ``record`` holds a non-blank key for ``model``."""
    if not record:
        return False

    field = required_field(model, use_gemini_auto)
    return _is_set(_as_dict(record).get(field.value))


def has_any_key_set(record: RecordLike | None) -> bool:
    """Check whether any key field of ``record`` is non-blank.

    The preference and any other non-string entries never count as a key.
    """
    if not record:
        return False

    return any(
        _is_set(key)
        for name, key in _as_dict(record).items()
        if name != "preference"
    )
