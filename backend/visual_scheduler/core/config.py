from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB_NAME: str = "visual_scheduler"

    # development / production
    ENVIRONMENT: str = "development"

    JWT_SECRET_KEY: str = "super-secret-key"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 1일
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    # 콤마로 구분된 Google OAuth 클라이언트 ID 목록 (모바일/웹)
    GOOGLE_CLIENT_ID: str = ""

    # change_stream: MongoDB change stream (replica set 필요)
    # poll: 주기적으로 재조회
    LIVE_QUERY_MODE: str = "change_stream"
    LIVE_QUERY_POLL_SECONDS: float = 2.0

    INVITE_TTL_HOURS: int = 72
    RECENT_ACTIVITY_LIMIT: int = 20

    CORS_ORIGINS: List[str] = [
        "http://localhost:8081",
        "http://127.0.0.1:8081",
        "http://localhost:19006",
    ]

    class Config:
        env_file = ".env"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def google_client_ids(self) -> List[str]:
        return [c.strip() for c in self.GOOGLE_CLIENT_ID.split(",") if c.strip()]


settings = Settings()
