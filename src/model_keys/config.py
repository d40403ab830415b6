"""
Configuration constants for the model key service.

Values are read from the environment once at import time. Call
``load_env_for_bundle`` before importing this module to pick up a ``.env`` file.
"""

import os

DEFAULT_HOST = os.getenv("SERVER_HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("SERVER_PORT", "8080"))

BACKEND_HOST = DEFAULT_HOST
BACKEND_PORT = DEFAULT_PORT

# Quiet period before a typed key is sent for validation
KEY_VALIDATION_DEBOUNCE_SECONDS = float(
    os.getenv("KEY_VALIDATION_DEBOUNCE_SECONDS", "0.3")
)
KEY_VALIDATION_TIMEOUT_SECONDS = float(
    os.getenv("KEY_VALIDATION_TIMEOUT_SECONDS", "10")
)

# Route the "auto" model to Gemini instead of Claude
USE_GEMINI_AUTO = os.getenv("USE_GEMINI_AUTO", "false").lower() in ("1", "true", "yes")

KEY_STORE_DIR = os.getenv("KEY_STORE_DIR")
