# app/services/auth_service.py
import logging
from typing import Annotated, Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.schemas.context import Role, UserContext

logger = logging.getLogger("coursework.auth")

bearer_scheme = HTTPBearer(auto_error=False)


class AuthService:
    """
    Verifica il bearer token emesso dall'identity provider e ne ricava il contesto utente.
    I token non vengono emessi qui.
    """

    @staticmethod
    def decode_token(token: str) -> UserContext:
        try:
            claims = jwt.decode(
                token,
                settings.jwt_public_key,
                algorithms=[settings.jwt_algorithm],
                options={"require": ["role"]},
            )
        except jwt.PyJWTError as e:
            logger.info("Token rejected: %s", e)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
                headers={"WWW-Authenticate": "Bearer"},
            ) from e

        user_id = claims.get("userId") or claims.get("sub")
        if not user_id:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token without user id",
                headers={"WWW-Authenticate": "Bearer"},
            )
        try:
            role = Role(claims["role"])
        except ValueError:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unsupported role")
        return UserContext(user_id=str(user_id), role=role)

    @staticmethod
    async def get_current_user(
        credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    ) -> UserContext:
        if credentials is None or not credentials.credentials:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return AuthService.decode_token(credentials.credentials)
