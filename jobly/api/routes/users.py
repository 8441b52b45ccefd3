from fastapi import APIRouter, Depends, HTTPException, status

from jobly.core.auth import ADMIN_ONLY, ADMIN_OR_SELF, Identity
from jobly.core.security import get_identity, require_capability
from jobly.core.tokens import TokenCodec, get_token_codec
from jobly.schemas.users import (
    ApplicationResponse,
    UserCreatedResponse,
    UserDeletedResponse,
    UserDetailResponse,
    UserListResponse,
    UserNewRequest,
    UserResponse,
    UserUpdateRequest,
)
from jobly.services.repository import (
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
    get_repository,
)

router = APIRouter()


@router.post("", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserNewRequest,
    identity: Identity | None = Depends(get_identity),
    codec: TokenCodec = Depends(get_token_codec),
    repository=Depends(get_repository),
) -> UserCreatedResponse:
    require_capability(identity, ADMIN_ONLY)

    try:
        row = await repository.register_user(
            username=payload.username,
            password=payload.password,
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            is_admin=payload.is_admin,
        )
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    token = codec.encode(Identity(username=row["username"], is_admin=row["is_admin"]))
    return UserCreatedResponse(user=row, token=token)


@router.get("", response_model=UserListResponse)
async def list_users(
    identity: Identity | None = Depends(get_identity),
    repository=Depends(get_repository),
) -> UserListResponse:
    require_capability(identity, ADMIN_ONLY)

    try:
        rows = await repository.list_users()
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return UserListResponse(users=rows)


@router.get("/{username}", response_model=UserDetailResponse)
async def get_user(
    username: str,
    identity: Identity | None = Depends(get_identity),
    repository=Depends(get_repository),
) -> UserDetailResponse:
    require_capability(identity, ADMIN_OR_SELF, route_subject=username)

    try:
        row = await repository.get_user(username)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return UserDetailResponse(user=row)


@router.patch("/{username}", response_model=UserResponse)
async def patch_user(
    username: str,
    payload: UserUpdateRequest,
    identity: Identity | None = Depends(get_identity),
    repository=Depends(get_repository),
) -> UserResponse:
    require_capability(identity, ADMIN_OR_SELF, route_subject=username)

    try:
        row = await repository.update_user(username, payload.changes())
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return UserResponse(user=row)


@router.delete("/{username}", response_model=UserDeletedResponse)
async def delete_user(
    username: str,
    identity: Identity | None = Depends(get_identity),
    repository=Depends(get_repository),
) -> UserDeletedResponse:
    require_capability(identity, ADMIN_OR_SELF, route_subject=username)

    try:
        await repository.remove_user(username)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return UserDeletedResponse(deleted=username)


@router.post("/{username}/jobs/{job_id}", response_model=ApplicationResponse)
async def apply_to_job(
    username: str,
    job_id: int,
    identity: Identity | None = Depends(get_identity),
    repository=Depends(get_repository),
) -> ApplicationResponse:
    require_capability(identity, ADMIN_OR_SELF, route_subject=username)

    try:
        await repository.apply_to_job(username, job_id)
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return ApplicationResponse(applied=job_id)
