"""Constants for provider endpoints and configuration."""

# Endpoints that list models and reject bad credentials with 401/403
ANTHROPIC_MODELS_ENDPOINT = "https://api.anthropic.com/v1/models"
OPENAI_MODELS_ENDPOINT = "https://api.openai.com/v1/models"
XAI_MODELS_ENDPOINT = "https://api.x.ai/v1/models"
GOOGLE_MODELS_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models"
OPENROUTER_KEY_ENDPOINT = "https://openrouter.ai/api/v1/auth/key"

ANTHROPIC_API_VERSION = "2023-06-01"

# HTTP configuration
USER_AGENT = "model-keys/1.0"

# Keyed by key type value
INSTRUCTIONS_URLS = {
    "anthropic": "https://docs.anthropic.com/en/api/getting-started#accessing-the-api",
    "google": "https://ai.google.dev/gemini-api/docs/api-key",
    "openai": "https://platform.openai.com/docs/api-reference/introduction",
    "xai": "https://docs.x.ai/docs/overview#welcome",
    "openrouter": "https://openrouter.ai/docs/api-reference/authentication",
}

PROVIDER_DESCRIPTIONS = {
    "anthropic": "Claude models for balanced performance",
    "google": "Gemini models for fast responses",
    "openai": "GPT models for advanced reasoning",
    "xai": "Grok models for efficient performance",
    "openrouter": "Models from many vendors through a single key",
}
