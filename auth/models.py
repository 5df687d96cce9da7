"""Request / response models for the auth API.

Also re-exports the ``User`` ORM model from the database package for use in
authentication-related code.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from database.models import User


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _CredentialsModel(_CamelModel):
    @field_validator("*")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value


class LoginRequest(_CredentialsModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class RegistrationRequest(_CredentialsModel):
    username: str = Field(..., alias="userName", min_length=1, max_length=64)
    email: str = Field(..., min_length=1, max_length=255)
    display_name: str = Field(..., min_length=1, max_length=128)
    password: str = Field(..., min_length=1, max_length=128)


class UserView(_CamelModel):
    """What a successful login / registration returns.  Never persisted."""

    display_name: str
    username: str = Field(..., alias="userName")
    image_url: Optional[str] = Field(None, alias="image")
    token: str


__all__ = ["LoginRequest", "RegistrationRequest", "User", "UserView"]
