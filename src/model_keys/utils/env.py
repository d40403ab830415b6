"""Environment variable loading utilities for bundled and development environments."""

import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def load_env_for_bundle() -> None:
    """Load environment variables from .env file.

    For bundled applications (PyInstaller), searches in the executable directory
    and Resources directory. For development, uses standard dotenv loading.
    """
    if getattr(sys, "frozen", False):
        bundle_dir = Path(sys.executable).parent
        possible_env_paths = [
            bundle_dir / ".env",
            bundle_dir.parent / ".env",
            bundle_dir.parent / "Resources" / ".env",  # macOS app bundles
        ]
        for env_path in possible_env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded environment from: {env_path}")
                break
        else:
            logger.info(
                f"No .env file found. Searched paths: {[str(p) for p in possible_env_paths]}"
            )
    else:
        load_dotenv()
