from fastapi import APIRouter, HTTPException, status

from app.core.logging_config import get_logger
from app.core.security import create_access_token
from app.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, RegisterResponse, UserResponse
from app.schemas.common import ErrorResponse
from app.services import user_service
from app.services.user_service import EmailAlreadyExists, InvalidCredentials

logger = get_logger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad request"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
)
def login(request: LoginRequest):
    try:
        user = user_service.authenticate(request.email, request.password)
    except InvalidCredentials as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )

    token = create_access_token(user.user_id, user.email)
    logger.info("User logged in", extra={"user_id": user.user_id})

    return LoginResponse(
        token=token,
        user=UserResponse(id=user.user_id, email=user.email, name=user.name),
    )


@router.post("/register", response_model=RegisterResponse)
def register(request: RegisterRequest):
    try:
        user = user_service.register_user(request.email, request.name, request.password)
    except EmailAlreadyExists as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    return RegisterResponse(user_id=user.user_id)
