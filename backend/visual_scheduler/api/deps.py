from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from visual_scheduler.core.security import decode_principal_id
from visual_scheduler.services.identity import Identity, resolve_identity_or_default

# FastAPI가 스와거 문서에서 토큰 입력창을 보여주게 함
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/google/verify")


async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    """
    JWT 토큰을 검증하고 user_id (sub)를 반환합니다.
    토큰이 없거나 잘못되면 DB 호출 전에 401.
    """
    user_id = decode_principal_id(token)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


async def get_current_identity(user_id: str = Depends(get_current_user_id)) -> Identity:
    """
    principal의 역할/연결 정보. 프로필이 없으면 최소 권한(USER) identity.
    """
    return await resolve_identity_or_default(user_id)
