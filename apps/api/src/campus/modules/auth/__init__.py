"""Authentication module."""

from campus.modules.auth.router import router
from campus.modules.auth.schemas import AuthResponse, LoginRequest, TokenResponse

__all__ = ["router", "AuthResponse", "LoginRequest", "TokenResponse"]
