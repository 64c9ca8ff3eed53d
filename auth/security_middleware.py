"""Staff authorization middleware - session validation and staff context."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from auth.session import SessionManager
from auth.exceptions import SessionExpiredError
from api.base import error_response, ErrorCodes
from utils.staff_context import set_current_staff_id, clear_current_staff_id


class StaffAuthMiddleware(BaseHTTPMiddleware):
    """Guards staff routes.

    For paths under a protected prefix:
    1. Reads the session token from the staff cookie or a Bearer header
    2. Validates it via SessionManager
    3. Sets staff_id in request.state and the staff context (for audit)
    4. Clears the context after the request completes

    Customer routes (ordering, code validation, webhooks) pass through.
    """

    PROTECTED_PREFIXES = [
        "/api/staff/",
    ]

    def __init__(self, app, session_manager: SessionManager, cookie_name: str = "staff_session"):
        super().__init__(app)
        self._session_manager = session_manager
        self._cookie_name = cookie_name

    def _is_protected_path(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.PROTECTED_PREFIXES)

    def _extract_token(self, request: Request) -> str | None:
        token = request.cookies.get(self._cookie_name)
        if token:
            return token

        authorization = request.headers.get("authorization", "")
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
        return None

    async def dispatch(self, request: Request, call_next):
        if not self._is_protected_path(request.url.path):
            return await call_next(request)

        token = self._extract_token(request)
        if not token:
            return JSONResponse(
                status_code=401,
                content=error_response(
                    ErrorCodes.NOT_AUTHENTICATED,
                    "Staff authentication required",
                    request_id=getattr(request.state, "request_id", None),
                ).model_dump(mode="json"),
            )

        try:
            session = self._session_manager.validate_session(token)
        except SessionExpiredError:
            return JSONResponse(
                status_code=401,
                content=error_response(
                    ErrorCodes.SESSION_EXPIRED,
                    "Session has expired",
                    request_id=getattr(request.state, "request_id", None),
                ).model_dump(mode="json"),
            )

        set_current_staff_id(session.staff_id)
        request.state.staff_id = session.staff_id
        request.state.session = session

        try:
            return await call_next(request)
        finally:
            clear_current_staff_id()
