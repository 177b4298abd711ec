from pydantic import BaseModel, ConfigDict, Field, field_validator


class SignupRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=6, max_length=256)
    name: str = Field(..., min_length=1, max_length=255)
    user_agent: str | None = Field(default=None, max_length=2048)

    model_config = ConfigDict(extra="forbid")

    @field_validator("email", "name")
    @classmethod
    def strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class SignupResponse(BaseModel):
    user_id: str
    email: str
    score: int


class SigninRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=256)

    model_config = ConfigDict(extra="forbid")

    @field_validator("email")
    @classmethod
    def strip_email(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class SigninResponse(BaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    user_id: str
    email: str


class PrecheckRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=320)
    name: str = Field(..., min_length=1, max_length=255)

    model_config = ConfigDict(extra="forbid")


class PrecheckResponse(BaseModel):
    normalized_email: str
    name_allowed: bool
    domain_allowed: bool
