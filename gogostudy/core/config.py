"""
config.py

애플리케이션 전역 설정(Configuration) 관리 파일.

.env 및 환경 변수를 Pydantic BaseSettings로 읽어
애플리케이션 전반에서 공통으로 사용하는 설정 값을 제공한다.

주요 설정 항목:
- 데이터베이스 연결 정보
- JWT 시크릿(access / refresh 분리) 및 TTL
- Redis(세션 / 블랙리스트 저장소) 연결 정보
- CORS 허용 도메인, 로그 레벨

규칙:
- 환경 변수는 이 파일을 통해서만 접근
- 필수 값(DATABASE_URL, JWT_*_SECRET)이 없으면 import 시점에 ValidationError로 기동 중단
- Settings는 frozen 객체로, 기동 후 값이 바뀌지 않음

관련 파일:
- gogostudy.main               : CORS / 로깅 / 저장소 초기화
- gogostudy.services.tokens    : JWT 시크릿 / TTL 사용
- gogostudy.db.session         : DATABASE_URL 사용
- gogostudy.db.kv              : REDIS_URL / REDIS_DISABLED 사용

"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    APP_ENV: str = "development"
    APP_NAME: str = "GoGoStudy API"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str
    # 로컬 실행용: 기동 시 테이블 자동 생성 (운영은 alembic 사용)
    DB_AUTO_CREATE: bool = False

    JWT_ACCESS_SECRET: str
    JWT_REFRESH_SECRET: str
    JWT_ALGORITHM: str = "HS256"

    ACCESS_TOKEN_TTL_SECONDS: int = 60 * 15
    REFRESH_TOKEN_TTL_SECONDS: int = 60 * 60 * 24 * 7

    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_DISABLED: bool = False

    # 비어 있으면 /auth/google 은 GOOGLE_AUTH_NOT_CONFIGURED 로 응답
    GOOGLE_CLIENT_ID: str | None = None

    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() == "production"


# 애플리케이션 전역에서 import하여 사용하는 Settings 인스턴스
settings = Settings()
