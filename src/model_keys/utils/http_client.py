"""HTTP client utilities for provider API requests."""

import httpx

from model_keys.utils.constants import USER_AGENT


async def make_api_request(
    url: str,
    headers: dict[str, str] | None = None,
    params: dict[str, str] | None = None,
    timeout: float = 30.0,
) -> httpx.Response:
    """Make a GET request with the default headers applied.

    Args:
        url: The URL to request
        headers: Optional custom headers, overriding the defaults
        params: Optional query parameters
        timeout: Request timeout in seconds

    Returns:
        The response, whatever its status code

    Raises:
        httpx.HTTPError: If the request could not be completed
    """
    default_headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}

    if headers:
        default_headers.update(headers)

    async with httpx.AsyncClient() as client:
        return await client.get(
            url, headers=default_headers, params=params, timeout=timeout
        )
