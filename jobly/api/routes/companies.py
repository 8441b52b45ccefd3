from fastapi import APIRouter, Depends, HTTPException, Query, status

from jobly.core.auth import ADMIN_ONLY, Identity
from jobly.core.security import get_identity, require_capability
from jobly.schemas.companies import (
    CompanyDeletedResponse,
    CompanyDetailResponse,
    CompanyListResponse,
    CompanyNewRequest,
    CompanyResponse,
    CompanyUpdateRequest,
)
from jobly.services.repository import (
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
    get_repository,
)

router = APIRouter()


@router.post("", response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
async def create_company(
    payload: CompanyNewRequest,
    identity: Identity | None = Depends(get_identity),
    repository=Depends(get_repository),
) -> CompanyResponse:
    require_capability(identity, ADMIN_ONLY)

    try:
        row = await repository.create_company(
            handle=payload.handle,
            name=payload.name,
            description=payload.description,
            num_employees=payload.num_employees,
            logo_url=payload.logo_url,
        )
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return CompanyResponse(company=row)


@router.get("", response_model=CompanyListResponse)
async def list_companies(
    min_employees: int | None = Query(default=None, ge=0, alias="minEmployees"),
    max_employees: int | None = Query(default=None, ge=0, alias="maxEmployees"),
    name_like: str | None = Query(default=None, alias="nameLike"),
    repository=Depends(get_repository),
) -> CompanyListResponse:
    try:
        rows = await repository.list_companies(
            min_employees=min_employees,
            max_employees=max_employees,
            name_like=name_like,
        )
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return CompanyListResponse(companies=rows)


@router.get("/{handle}", response_model=CompanyDetailResponse)
async def get_company(handle: str, repository=Depends(get_repository)) -> CompanyDetailResponse:
    try:
        row = await repository.get_company(handle)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return CompanyDetailResponse(company=row)


@router.patch("/{handle}", response_model=CompanyResponse)
async def patch_company(
    handle: str,
    payload: CompanyUpdateRequest,
    identity: Identity | None = Depends(get_identity),
    repository=Depends(get_repository),
) -> CompanyResponse:
    require_capability(identity, ADMIN_ONLY)

    try:
        row = await repository.update_company(handle, payload.changes())
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return CompanyResponse(company=row)


@router.delete("/{handle}", response_model=CompanyDeletedResponse)
async def delete_company(
    handle: str,
    identity: Identity | None = Depends(get_identity),
    repository=Depends(get_repository),
) -> CompanyDeletedResponse:
    require_capability(identity, ADMIN_ONLY)

    try:
        await repository.remove_company(handle)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return CompanyDeletedResponse(deleted=handle)
