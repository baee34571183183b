"""Authentication module."""

from app.modules.auth.router import router
from app.modules.auth.schemas import LoginRequest, LoginResponse, SignupRequest

__all__ = ["router", "LoginRequest", "LoginResponse", "SignupRequest"]
