"""Pydantic schemas shared across routers."""
from pydantic import BaseModel


# Auth schemas
class LoginRequest(BaseModel):
    """Schema for login request."""
    username: str
    password: str


class LoginResponse(BaseModel):
    """Schema for login response."""
    access_token: str
    token_type: str = "bearer"
