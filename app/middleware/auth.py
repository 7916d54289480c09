"""
StreakFit API - Authentication Middleware.

JWT bearer verification for caller identity.
"""

from typing import Optional

from fastapi import Request, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.services.auth import verify_token, is_token_blacklisted


class JWTBearer(HTTPBearer):
    """
    JWT Bearer token authentication.

    With `auto_error=False` a missing or invalid token yields None so the
    caller decides whether an anonymous request is acceptable.

    Attributes:
        auto_error: Whether to automatically raise errors.
    """

    def __init__(self, auto_error: bool = True):
        """
        Initialize JWTBearer.

        Args:
            auto_error: Whether to raise HTTPException on auth failure.
        """
        super().__init__(auto_error=auto_error)

    def _fail(self, detail: str) -> None:
        if self.auto_error:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=detail,
                headers={"WWW-Authenticate": "Bearer"}
            )
        return None

    async def __call__(self, request: Request) -> Optional[str]:
        """
        Verify JWT token from Authorization header.

        Args:
            request: FastAPI request object.

        Returns:
            Optional[str]: User ID (`sub` claim) if the token is valid.
        """
        credentials: Optional[HTTPAuthorizationCredentials] = await super().__call__(request)

        if not credentials:
            return self._fail("Not authenticated")

        if credentials.scheme.lower() != "bearer":
            return self._fail("Invalid authentication scheme")

        # Check if token is blacklisted (logout)
        if await is_token_blacklisted(credentials.credentials):
            return self._fail("Token has been revoked")

        payload = verify_token(credentials.credentials)
        if not payload:
            return self._fail("Invalid or expired token")

        user_id = payload.get("sub")
        if not user_id:
            return self._fail("Invalid token payload")

        return user_id


# Identity is optional at this layer; the session manager decides
# which operations require it.
optional_jwt_bearer = JWTBearer(auto_error=False)
