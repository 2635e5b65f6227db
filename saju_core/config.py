"""
Saju Core Settings
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
- 만세력 데이터 소스 선택 (none / sqlite / kasi)
- KASI API 키, 캐시, 서버, CORS
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # 만세력 데이터 소스
    # none: 공식 계산만 / sqlite: calenda_data 테이블 / kasi: 천문연 API
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    calendar_source: str = "none"
    calendar_db_path: str = "calendar.db"

    # 만세력 없이 공식 계산으로 대체하지 않음 (True 면 UNCONFIGURED)
    require_almanac: bool = False

    # KASI API
    kasi_api_key: str = ""
    kasi_timeout_seconds: float = 20.0

    @property
    def clean_kasi_api_key(self) -> str:
        return self.kasi_api_key.strip().replace('\n', '').replace('\r', '')

    # Cache (만세력 조회 결과)
    cache_enabled: bool = True
    cache_ttl_seconds: int = 86400
    cache_max_size: int = 10000

    # Logging
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # CORS
    allowed_origins: str = "http://localhost:3000"

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


_settings: Optional[Settings] = None

def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
