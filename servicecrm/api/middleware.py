"""
Request gate for protected page paths (/dashboard, /admin).

No valid session -> redirect to "/". Session whose role does not reach the
path -> redirect to "/unauthorized". Public paths pass through untouched.
"""

import logging
from collections.abc import Callable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.types import ASGIApp

from servicecrm.api.auth_utils import extract_token
from servicecrm.api.deps import session_from_token
from servicecrm.domain.policy import AccessPolicy

logger = logging.getLogger(__name__)

LOGIN_PATH = "/"
UNAUTHORIZED_PATH = "/unauthorized"


class AccessGateMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, policy_provider: Callable[[], AccessPolicy]) -> None:
        super().__init__(app)
        self._policy_provider = policy_provider

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        policy = self._policy_provider()
        path = request.url.path

        if policy.is_public_path(path):
            return await call_next(request)

        session = session_from_token(extract_token(request))
        if session is None:
            return RedirectResponse(url=LOGIN_PATH)

        if not policy.is_path_allowed(session.role, path):
            logger.info("Denied %s for role %s", path, session.role.value)
            return RedirectResponse(url=UNAUTHORIZED_PATH)

        return await call_next(request)
