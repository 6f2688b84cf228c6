from pydantic import EmailStr, Field

from gogostudy.schemas.common import CamelModel
from gogostudy.schemas.user import UserResponse


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=64)
    name: str = Field(min_length=1, max_length=100)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class LogoutRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class GoogleLoginRequest(CamelModel):
    id_token: str = Field(min_length=1)


class AuthResponse(CamelModel):
    user: UserResponse
    access_token: str
    refresh_token: str
