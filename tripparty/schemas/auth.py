# tripparty/schemas/auth.py
from pydantic import BaseModel, Field, constr

from tripparty.schemas.user import UserSummary


class SigninRequest(BaseModel):
    username: str = Field(..., min_length=1, description="Username")
    password: str = Field(..., min_length=1, description="Password")


class RegisterRequest(BaseModel):
    username: constr(strip_whitespace=True, min_length=3, max_length=50)
    password: constr(min_length=6, max_length=128)


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserSummary
