from fastapi import Request
from pydantic import BaseModel

from libs.errors import AuthenticationError
from libs.settings import settings


class Principal(BaseModel):
    """The session user as established by the upstream auth provider."""

    id: str


async def require_principal(request: Request) -> Principal:
    """
    FastAPI dependency gating write endpoints on an authenticated session.

    Sign-in (Google OAuth or credentials) happens in front of this service;
    the gateway forwards the session user id in `settings.principal_header`.
    """
    user_id = request.headers.get(settings.principal_header, "").strip()
    if not user_id:
        raise AuthenticationError()
    return Principal(id=user_id)
