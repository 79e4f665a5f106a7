from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from frequency.core.database import get_db
from frequency.schemas.auth import (
    Token,
    RegisterRequest,
    LoginRequest,
    RefreshTokenRequest,
    GoogleAuthRequest
)
from frequency.services.auth import AuthService

router = APIRouter()


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    """Register with email or phone and a password"""
    auth_service = AuthService(db)
    user = await auth_service.register(user_data)
    return auth_service.create_tokens(user)


@router.post("/login", response_model=Token)
async def login(
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Login with email or phone and a password"""
    auth_service = AuthService(db)
    user = await auth_service.authenticate(login_data)
    return auth_service.create_tokens(user)


@router.post("/refresh", response_model=Token)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db)
):
    """Refresh access token"""
    auth_service = AuthService(db)
    return await auth_service.refresh_access_token(refresh_data.refresh_token)


@router.post("/google", response_model=Token)
async def google_login(
    google_data: GoogleAuthRequest,
    db: AsyncSession = Depends(get_db)
):
    """Login or register with Google OAuth"""
    auth_service = AuthService(db)
    user = await auth_service.google_auth(google_data.credential)
    return auth_service.create_tokens(user)
