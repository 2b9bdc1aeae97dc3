from fastapi import APIRouter

from articles_api.dependencies import AuthServiceDep
from articles_api.schemas import AuthResponse, LoginRequest, RegisterRequest

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=201, response_model=AuthResponse)
async def register(data: RegisterRequest, auth_service: AuthServiceDep):
    return await auth_service.register(data.email, data.password)


@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, auth_service: AuthServiceDep):
    return await auth_service.login(data.email, data.password)
