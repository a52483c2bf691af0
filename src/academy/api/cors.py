"""
CORS headers - One fixed header set stamped on every response.

Preflight requests are answered by the OPTIONS routes (200, empty body);
nothing here short-circuits a request, so an OPTIONS call never fails
on the headers it asks for.
"""

from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response

from academy.config.settings import Settings

ALLOW_HEADERS = "Content-Type, Authorization"
ALLOW_METHODS = "POST, OPTIONS"


def cors_headers(allowed_origins: list[str], origin: str | None) -> dict[str, str]:
    """
    Headers for a response to a request from `origin`.

    A wildcard allow-list answers `*`; otherwise a listed origin is echoed
    back and an unlisted one gets no Access-Control-Allow-Origin.
    """
    headers = {
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Access-Control-Allow-Methods": ALLOW_METHODS,
    }
    if "*" in allowed_origins:
        headers["Access-Control-Allow-Origin"] = "*"
    elif origin is not None and origin in allowed_origins:
        headers["Access-Control-Allow-Origin"] = origin
        headers["Vary"] = "Origin"
    return headers


def install_cors_headers(app: FastAPI, settings: Settings) -> None:
    """Add the CORS headers to every response `app` produces."""

    @app.middleware("http")
    async def add_cors_headers(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        response.headers.update(
            cors_headers(settings.cors_allow_origins, request.headers.get("origin"))
        )
        return response
