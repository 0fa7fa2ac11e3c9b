# backend/visual_scheduler/api/endpoints/auth.py

from fastapi import APIRouter, HTTPException
from google.oauth2 import id_token  # pip install google-auth
from google.auth.transport import requests as google_requests

from visual_scheduler.core.config import settings
from visual_scheduler.core.security import create_access_token, create_refresh_token, decode_principal_id
from visual_scheduler.crud import users as users_crud
from visual_scheduler.schemas.user import TokenBody, TokenResponse

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


def _verify_google_id_token(token: str) -> dict:
    """
    Google ID 토큰 검증 (허용된 클라이언트 ID 목록 중 하나여야 함)
    """
    return id_token.verify_oauth2_token(
        token,
        google_requests.Request(),
        audience=settings.google_client_ids or None,
    )


@router.post("/google/verify", response_model=TokenResponse)
async def verify_google_token(body: TokenBody):
    """
    모바일 앱에서 받은 Google ID 토큰을 검증하고 access/refresh 토큰을 발급합니다.
    처음 로그인한 유저는 role 없이 생성되고 /users/register 로 가입을 마칩니다.
    """
    try:
        idinfo = _verify_google_id_token(body.token)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid Google token")

    email = idinfo.get("email")
    if not email:
        raise HTTPException(status_code=400, detail="Google token missing email")

    user = await users_crud.upsert_google_user(email=email, google_id=idinfo.get("sub"))

    return TokenResponse(
        access_token=create_access_token(user.id),
        refresh_token=create_refresh_token(user.id),
    )


@router.post("/refresh", response_model=TokenResponse)
async def refresh_tokens(body: TokenBody):
    """
    refresh 토큰으로 새 토큰 쌍을 발급합니다. (body.token = refresh token)
    """
    user_id = decode_principal_id(body.token, expected_type="refresh")
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    return TokenResponse(
        access_token=create_access_token(user_id),
        refresh_token=create_refresh_token(user_id),
    )
