from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from google.auth.transport import requests
from google.oauth2 import id_token
import logging

from frequency.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    verify_password
)
from frequency.core.config import settings
from frequency.repositories.user import UserRepository
from frequency.schemas.auth import RegisterRequest, LoginRequest, Token
from frequency.models.user import User
from frequency.utils.exceptions import ConflictError, NotAuthenticated, ValidationError

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession):
        self.user_repo = UserRepository(db)

    async def register(self, data: RegisterRequest) -> User:
        """Register with email/password or phone/password"""
        if data.email and await self.user_repo.get_by_email(data.email):
            raise ConflictError("User with this email already exists")
        if data.phone and await self.user_repo.get_by_phone(data.phone):
            raise ConflictError("User with this phone number already exists")

        display_name = data.display_name
        if not display_name:
            display_name = data.email.split("@")[0] if data.email else None

        user = await self.user_repo.create(
            password=data.password,
            email=data.email,
            phone=data.phone,
            display_name=display_name
        )
        logger.info(f"User registered: {user.id}")
        return user

    async def authenticate(self, data: LoginRequest) -> User:
        """Check email/phone and password"""
        if data.email:
            user = await self.user_repo.get_by_email(data.email)
        else:
            user = await self.user_repo.get_by_phone(data.phone)

        if not user or not user.hashed_password:
            raise NotAuthenticated("Invalid login credentials")

        if not verify_password(data.password, user.hashed_password):
            raise NotAuthenticated("Invalid login credentials")

        if not user.is_active:
            raise NotAuthenticated("Account is disabled")

        return user

    def create_tokens(self, user: User) -> Token:
        """Create access and refresh tokens for user"""
        return Token(
            access_token=create_access_token(user.id),
            refresh_token=create_refresh_token(user.id),
            token_type="bearer",
            user_id=user.id
        )

    async def refresh_access_token(self, refresh_token: str) -> Token:
        """Refresh access token using refresh token"""
        payload = decode_token(refresh_token)
        if not payload or payload.get("type") != "refresh":
            raise NotAuthenticated("Invalid refresh token")

        user_id = payload.get("sub")
        user = await self.user_repo.get_by_id(user_id) if user_id else None
        if not user or not user.is_active:
            raise NotAuthenticated("Invalid refresh token")

        return self.create_tokens(user)

    async def google_auth(self, credential: str) -> User:
        """Sign in or register with a Google ID token"""
        if not settings.GOOGLE_CLIENT_ID:
            raise ValidationError("Google sign-in is not configured")

        try:
            idinfo = id_token.verify_oauth2_token(
                credential,
                requests.Request(),
                settings.GOOGLE_CLIENT_ID
            )
        except ValueError:
            # Invalid token
            raise NotAuthenticated("Invalid Google credentials")

        email = idinfo.get("email")
        name = idinfo.get("name")
        google_id = idinfo.get("sub")

        if not email or not google_id:
            raise NotAuthenticated("Invalid Google credentials")

        # Check if user exists with this Google ID
        user = await self.user_repo.get_by_oauth("google", google_id)

        if not user:
            user = await self.user_repo.get_by_email(email)
            if user:
                # Link existing account with Google
                user = await self.user_repo.link_oauth(user, "google", google_id)
            else:
                user = await self.user_repo.create(
                    password=None,
                    email=email,
                    display_name=name or email.split("@")[0],
                    oauth_provider="google",
                    oauth_provider_id=google_id
                )
                logger.info(f"User registered through Google: {user.id}")

        if not user.is_active:
            raise NotAuthenticated("Account is disabled")

        return user
