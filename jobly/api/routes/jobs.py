from fastapi import APIRouter, Depends, HTTPException, Query, status

from jobly.core.auth import ADMIN_ONLY, Identity
from jobly.core.security import get_identity, require_capability
from jobly.schemas.jobs import (
    JobDeletedResponse,
    JobDetailResponse,
    JobListResponse,
    JobNewRequest,
    JobResponse,
    JobUpdateRequest,
)
from jobly.services.repository import (
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
    get_repository,
)

router = APIRouter()


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(
    payload: JobNewRequest,
    identity: Identity | None = Depends(get_identity),
    repository=Depends(get_repository),
) -> JobResponse:
    require_capability(identity, ADMIN_ONLY)

    try:
        row = await repository.create_job(
            title=payload.title,
            salary=payload.salary,
            equity=payload.equity,
            company_handle=payload.company_handle,
        )
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return JobResponse(job=row)


@router.get("", response_model=JobListResponse)
async def list_jobs(
    min_salary: int | None = Query(default=None, ge=0, alias="minSalary"),
    has_equity: str | None = Query(default=None, alias="hasEquity"),
    title: str | None = Query(default=None),
    repository=Depends(get_repository),
) -> JobListResponse:
    try:
        rows = await repository.list_jobs(
            min_salary=min_salary,
            has_equity=has_equity == "true",
            title=title,
        )
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return JobListResponse(jobs=rows)


@router.get("/{job_id}", response_model=JobDetailResponse)
async def get_job(job_id: int, repository=Depends(get_repository)) -> JobDetailResponse:
    try:
        row = await repository.get_job(job_id)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return JobDetailResponse(job=row)


@router.patch("/{job_id}", response_model=JobResponse)
async def patch_job(
    job_id: int,
    payload: JobUpdateRequest,
    identity: Identity | None = Depends(get_identity),
    repository=Depends(get_repository),
) -> JobResponse:
    require_capability(identity, ADMIN_ONLY)

    try:
        row = await repository.update_job(job_id, payload.changes())
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return JobResponse(job=row)


@router.delete("/{job_id}", response_model=JobDeletedResponse)
async def delete_job(
    job_id: int,
    identity: Identity | None = Depends(get_identity),
    repository=Depends(get_repository),
) -> JobDeletedResponse:
    require_capability(identity, ADMIN_ONLY)

    try:
        await repository.remove_job(job_id)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return JobDeletedResponse(deleted=job_id)
