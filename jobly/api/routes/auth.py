from fastapi import APIRouter, Depends, HTTPException, status

from jobly.core.auth import Identity
from jobly.core.tokens import TokenCodec, get_token_codec
from jobly.schemas.auth import TokenOut, TokenRequest
from jobly.schemas.users import UserRegisterRequest
from jobly.services.repository import (
    RepositoryUnavailableError,
    RepositoryValidationError,
    get_repository,
)

router = APIRouter()


@router.post("/token", response_model=TokenOut)
async def issue_token(
    payload: TokenRequest,
    codec: TokenCodec = Depends(get_token_codec),
    repository=Depends(get_repository),
) -> TokenOut:
    try:
        user = await repository.authenticate_user(payload.username, payload.password)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid username/password")

    return TokenOut(token=codec.encode(Identity(username=user["username"], is_admin=user["is_admin"])))


@router.post("/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
async def register(
    payload: UserRegisterRequest,
    codec: TokenCodec = Depends(get_token_codec),
    repository=Depends(get_repository),
) -> TokenOut:
    try:
        user = await repository.register_user(
            username=payload.username,
            password=payload.password,
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            is_admin=False,
        )
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    return TokenOut(token=codec.encode(Identity(username=user["username"], is_admin=user["is_admin"])))
