from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class UserRead(BaseModel):
    id: Union[int, str]
    email: str
    name: str
    onboarding_completed: bool = False

    model_config = ConfigDict(extra="ignore")


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=1)

    model_config = ConfigDict(str_strip_whitespace=True)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = ""

    model_config = ConfigDict(str_strip_whitespace=True)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = Field(None, pattern=r"^[^@\s]+@[^@\s]+$")
    onboarding_completed: Optional[bool] = None

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)
