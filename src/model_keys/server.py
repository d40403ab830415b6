"""HTTP server exposing provider key management."""

import argparse
import logging

import uvicorn
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from model_keys.key_storage.key_manager import KeyRecordManager, StorageMethod
from model_keys.key_storage.requirements import has_any_key_set
from model_keys.settings.api_key.settings import (
    APIKeySettingsHandler,
    create_api_key_routes,
)
from model_keys.utils.env import load_env_for_bundle


async def health(request: Request) -> JSONResponse:
    """Health check."""
    return JSONResponse({"status": "healthy"})


def create_app(
    key_manager: KeyRecordManager | None = None,
    use_gemini_auto: bool | None = None,
) -> Starlette:
    """Build the Starlette application.

    Args:
        key_manager: Storage service, defaults to the OS keychain/file manager
        use_gemini_auto: Whether "auto" routes to Gemini, defaults to config
    """
    from model_keys.config import USE_GEMINI_AUTO

    handler = APIKeySettingsHandler(
        key_manager=key_manager,
        use_gemini_auto=USE_GEMINI_AUTO if use_gemini_auto is None else use_gemini_auto,
    )
    routes = [Route("/health", health, methods=["GET"])]
    routes.extend(create_api_key_routes(handler))

    app = Starlette(routes=routes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        allow_methods=["GET", "POST", "DELETE", "PUT"],
        allow_headers=["*"],
    )
    return app


def check_key_availability(
    key_manager: KeyRecordManager,
) -> tuple[bool, str, StorageMethod]:
    """Check if any provider key is stored at startup.

    Returns:
        Tuple of (has_key, status_message, source)
    """
    record, source = key_manager.get_record()

    if has_any_key_set(record):
        return True, f"Provider keys found in {source.value}", source
    return False, "No provider keys found in any storage location", source


def main() -> None:
    """Main entry point for the key management server."""
    load_env_for_bundle()
    from model_keys.config import BACKEND_HOST, BACKEND_PORT

    parser = argparse.ArgumentParser(
        description="Provider API key management server"
    )
    parser.add_argument("--host", default=BACKEND_HOST, help="Host to bind to")
    parser.add_argument(
        "--port", type=int, default=BACKEND_PORT, help="Port to listen on"
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--skip-key-check",
        action="store_true",
        help="Skip key availability check at startup",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    key_manager = KeyRecordManager()
    if not args.skip_key_check:
        has_key, message, _ = check_key_availability(key_manager)
        print(f"🔑 {message}" if has_key else f"⚠️  {message}")

    app = create_app(key_manager)

    print(f"Key management server starting on http://{args.host}:{args.port}")
    print("Endpoints:")
    print("   GET /api/keys - Masked key record")
    print("   PUT /api/keys/{key_type} - Save a provider key")
    print("   DELETE /api/keys/{key_type} - Remove a provider key")
    print("   POST /api/keys/{key_type}/validate - Validate a provider key")
    print("   PUT /api/keys/preference - Always use my keys")
    print("   GET /api/keys/usable?model=... - Check key for a model")
    print("   GET /health - Health check")

    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
