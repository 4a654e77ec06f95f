"""HTTP routes for authentication and session management.

    GET /api/auth/login     -> {"authUrl": ...}, stashes verifier + state
    GET /api/auth/callback  -> 302 to the app, or to the error page
    GET /api/auth/me        -> {"authenticated": bool, "user"?: {...}}
    GET /api/auth/logout    -> clears the token cookies
    GET /api/auth/profile   -> current user (guarded)
    GET /api/status         -> liveness
"""

from __future__ import annotations

from urllib.parse import quote

from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.routing import Route

from .errors import LoginFlowError, UpstreamError
from .helpers import get_current_user
from .logging_config import get_logger
from .responses import JSONResponse
from .session.flow import AuthFlow
from .session.guard import require_session

logger = get_logger("routes")


def _error_redirect(frontend_uri: str, message: str) -> RedirectResponse:
    return RedirectResponse(
        f"{frontend_uri}/error?message={quote(message)}", status_code=302
    )


async def login(request: Request) -> Response:
    flow: AuthFlow = request.app.state.auth_flow
    login_request = flow.login()
    response = JSONResponse({"authUrl": login_request.auth_url})
    flow.stash_login(response, login_request)
    return response


async def callback(request: Request) -> Response:
    flow: AuthFlow = request.app.state.auth_flow
    config = flow.config
    params = request.query_params
    cookies = flow.transport.read(request)

    try:
        pair = await flow.callback(
            cookies,
            code=params.get("code"),
            state=params.get("state"),
            error=params.get("error"),
        )
    except LoginFlowError as e:
        logger.warning("Login failed: %s (%s)", type(e).__name__, e.detail)
        response = _error_redirect(config.frontend_uri, e.message)
    else:
        response = RedirectResponse(
            f"{config.frontend_uri}{config.post_login_path}", status_code=302
        )
        flow.transport.store_tokens(response, pair)

    flow.transport.clear_login(response)
    return response


async def me(request: Request) -> Response:
    flow: AuthFlow = request.app.state.auth_flow

    try:
        status = await flow.current_session(flow.transport.read(request))
    except UpstreamError as e:
        logger.error("Could not load user profile: status=%s", e.status_code)
        return JSONResponse({"error": "Failed to load user profile"}, status_code=500)

    return JSONResponse(status, status_code=200 if status.authenticated else 401)


async def logout(request: Request) -> Response:
    flow: AuthFlow = request.app.state.auth_flow
    response = JSONResponse({"success": True, "message": "Logged out"})
    flow.logout(response)
    return response


@require_session
async def profile(request: Request) -> Response:
    try:
        user = await get_current_user(request)
    except UpstreamError as e:
        logger.error("Could not load user profile: status=%s", e.status_code)
        return JSONResponse({"error": "Failed to load user profile"}, status_code=502)
    return JSONResponse(user)


async def status(request: Request) -> Response:
    return JSONResponse({"status": "OK", "message": "Server is running"})


routes = [
    Route("/api/auth/login", login, methods=["GET"]),
    Route("/api/auth/callback", callback, methods=["GET"]),
    Route("/api/auth/me", me, methods=["GET"]),
    Route("/api/auth/logout", logout, methods=["GET"]),
    Route("/api/auth/profile", profile, methods=["GET"]),
    Route("/api/status", status, methods=["GET"]),
]
