from decimal import Decimal

from pydantic import ConfigDict, Field

from jobly.schemas.common import HANDLE_MAX_LENGTH, CamelModel, PatchModel
from jobly.schemas.companies import CompanyOut


class JobOut(CamelModel):
    id: int
    title: str
    salary: int | None = None
    equity: Decimal | None = None
    company_handle: str


class JobListOut(JobOut):
    company_name: str | None = None


class JobDetailOut(CamelModel):
    id: int
    title: str
    salary: int | None = None
    equity: Decimal | None = None
    company: CompanyOut | None = None


class JobNewRequest(CamelModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1)
    salary: int | None = Field(default=None, ge=0)
    equity: Decimal | None = Field(default=None, ge=0, le=1)
    company_handle: str = Field(min_length=1, max_length=HANDLE_MAX_LENGTH)


class JobUpdateRequest(PatchModel):
    title: str | None = Field(default=None, min_length=1)
    salary: int | None = Field(default=None, ge=0)
    equity: Decimal | None = Field(default=None, ge=0, le=1)


class JobResponse(CamelModel):
    job: JobOut


class JobDetailResponse(CamelModel):
    job: JobDetailOut


class JobListResponse(CamelModel):
    jobs: list[JobListOut] = Field(default_factory=list)


class JobDeletedResponse(CamelModel):
    deleted: int
