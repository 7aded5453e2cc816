from __future__ import annotations

from datetime import datetime
from typing import Annotated

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, Field

from authsvc.domain.users.entities import TokenPair, User


def _check_email(value: str) -> str:
    # Validated only; the address is stored exactly as submitted.
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(str(exc)) from exc
    return value


SubmittedEmail = Annotated[str, Field(max_length=320), AfterValidator(_check_email)]


class RegisterRequestDTO(BaseModel):
    username: str = Field(min_length=3, max_length=20, pattern=r"^[a-zA-Z0-9]+$")
    email: SubmittedEmail
    password: str = Field(min_length=8, max_length=128)


class LoginRequestDTO(BaseModel):
    login: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=128)


class RefreshTokenRequestDTO(BaseModel):
    refresh_token: str = Field(min_length=1, max_length=1024)


class TokenPairDTO(BaseModel):
    access_token: str
    refresh_token: str

    @classmethod
    def from_pair(cls, pair: TokenPair) -> TokenPairDTO:
        return cls(
            access_token=pair.access_token.token,
            refresh_token=pair.refresh_token.token,
        )


class RegisterResponseDTO(TokenPairDTO):
    user_id: int


class UserDTO(BaseModel):
    id: int
    username: str
    email: str
    admin: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, user: User) -> UserDTO:
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            admin=user.admin,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
