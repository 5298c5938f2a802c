from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class PartnerCreate(BaseModel):
    partner_name: str = Field(..., min_length=1, max_length=255)
    partner_email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$")
    shared_goals: list[Union[int, str]] = Field(default_factory=list)
    privacy_settings: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class PartnerRead(BaseModel):
    id: Union[int, str]
    user_id: Union[int, str, None] = None
    partner_name: str
    partner_email: str
    shared_goals: list[Union[int, str]] = Field(default_factory=list)
    privacy_settings: dict[str, Any] = Field(default_factory=dict)
    status: str = "active"
    created_at: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class ReflectionCreate(BaseModel):
    prompt: str = Field(..., min_length=1)
    response: str = Field(..., min_length=1)


class ReflectionRead(BaseModel):
    id: Union[int, str]
    user_id: Union[int, str, None] = None
    prompt: str
    response: str
    created_at: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class ShareRequest(BaseModel):
    platform: str
    url: Optional[str] = None  # defaults to the app's public url
    hashtags: list[str] = Field(default_factory=list)


class ShareRead(BaseModel):
    platform: str
    text: str
    share_url: Optional[str] = None  # None means "copy the text instead"
    percentage: int


class InviteRequest(BaseModel):
    goal_ids: list[Union[int, str]] = Field(default_factory=list)
    privacy: dict[str, bool] = Field(
        default_factory=lambda: {
            "shareProgress": True,
            "shareCompletions": True,
            "allowEncouragement": True,
            "shareReflections": False,
        }
    )


class InviteRead(BaseModel):
    link: str
    email_subject: str
    email_body: str
