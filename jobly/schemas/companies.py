from decimal import Decimal

from pydantic import ConfigDict, Field

from jobly.schemas.common import HANDLE_MAX_LENGTH, URL_PATTERN, CamelModel, PatchModel


class CompanyOut(CamelModel):
    handle: str
    name: str
    description: str | None = None
    num_employees: int | None = None
    logo_url: str | None = None


class CompanyJobOut(CamelModel):
    id: int
    title: str
    salary: int | None = None
    equity: Decimal | None = None


class CompanyDetailOut(CompanyOut):
    jobs: list[CompanyJobOut] = Field(default_factory=list)


class CompanyNewRequest(CamelModel):
    model_config = ConfigDict(extra="forbid")

    handle: str = Field(min_length=1, max_length=HANDLE_MAX_LENGTH)
    name: str = Field(min_length=1)
    description: str | None = None
    num_employees: int | None = Field(default=None, ge=0)
    logo_url: str | None = Field(default=None, pattern=URL_PATTERN)


class CompanyUpdateRequest(PatchModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    num_employees: int | None = Field(default=None, ge=0)
    logo_url: str | None = Field(default=None, pattern=URL_PATTERN)


class CompanyResponse(CamelModel):
    company: CompanyOut


class CompanyDetailResponse(CamelModel):
    company: CompanyDetailOut


class CompanyListResponse(CamelModel):
    companies: list[CompanyOut] = Field(default_factory=list)


class CompanyDeletedResponse(CamelModel):
    deleted: str
