#teamboard/schemas/auth.py
from pydantic import EmailStr, Field

from teamboard.schemas.common import CamelModel

class RegisterRequest(CamelModel):
    """
    RegisterRequest: body of POST /api/auth/register.
    """
    name: str = Field(..., min_length=1, examples=["Alice"], description="Display name")
    email: EmailStr = Field(..., examples=["alice@example.com"], description="Email")
    password: str = Field(..., min_length=6, examples=["pw123456"], description="Password")

class LoginRequest(CamelModel):
    """
    LoginRequest: body of POST /api/auth/login.
    """
    email: str = Field(..., examples=["alice@example.com"])
    password: str = Field(..., examples=["pw123456"])

class AuthResult(CamelModel):
    """
    AuthResult: account fields plus the bearer token.
    """
    id: int
    name: str
    email: str
    role: str
    token: str = Field(..., description="Bearer token, valid for 30 days")
