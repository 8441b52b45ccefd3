from pydantic import ConfigDict, Field

from jobly.schemas.common import EMAIL_PATTERN, USERNAME_MAX_LENGTH, CamelModel, PatchModel

PASSWORD_MIN_LENGTH = 5
PASSWORD_MAX_LENGTH = 20
NAME_MAX_LENGTH = 30


class UserOut(CamelModel):
    username: str
    first_name: str
    last_name: str
    email: str
    is_admin: bool = False


class UserJobOut(CamelModel):
    id: int
    title: str
    company_handle: str
    company_name: str | None = None


class UserDetailOut(UserOut):
    jobs: list[UserJobOut] = Field(default_factory=list)


class UserRegisterRequest(CamelModel):
    model_config = ConfigDict(extra="forbid")

    username: str = Field(min_length=1, max_length=USERNAME_MAX_LENGTH)
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    first_name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    last_name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    email: str = Field(min_length=6, max_length=60, pattern=EMAIL_PATTERN)


class UserNewRequest(UserRegisterRequest):
    is_admin: bool = False


class UserUpdateRequest(PatchModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    last_name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    password: str | None = Field(default=None, min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    email: str | None = Field(default=None, min_length=6, max_length=60, pattern=EMAIL_PATTERN)


class UserResponse(CamelModel):
    user: UserOut


class UserDetailResponse(CamelModel):
    user: UserDetailOut


class UserCreatedResponse(CamelModel):
    user: UserOut
    token: str


class UserListResponse(CamelModel):
    users: list[UserOut] = Field(default_factory=list)


class UserDeletedResponse(CamelModel):
    deleted: str


class ApplicationResponse(CamelModel):
    applied: int
