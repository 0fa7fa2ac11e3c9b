from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from typing import Any, Optional, Union

from visual_scheduler.core.config import settings


def create_access_token(subject: Union[str, Any]) -> str:
    """
    Access Token 생성 (유효기간 짧음)
    """
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {"exp": expire, "sub": str(subject), "type": "access"}
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

def create_refresh_token(subject: Union[str, Any]) -> str:
    """
    Refresh Token 생성 (유효기간 김)
    """
    expire = datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    to_encode = {"exp": expire, "sub": str(subject), "type": "refresh"}
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

def decode_principal_id(token: str, expected_type: str = "access") -> Optional[str]:
    """
    토큰을 검증하고 principal id(sub)를 반환합니다.
    서명/만료/타입이 맞지 않으면 None.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != expected_type:
        return None

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub.strip():
        return None
    return sub
