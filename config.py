"""Application settings loaded from environment."""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_NOISE_TYPES = [
    "발걸음",
    "가구 끌기",
    "대화/고성",
    "음악/TV",
    "반려동물",
    "가전제품",
    "배관",
    "공사",
    "차량",
    "기타",
]


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Strongly typed settings for the noise report service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    mongo_url: str = Field(default="mongodb://localhost:27017", alias="MONGO_URL")
    database_name: str = Field(default="noise_report", alias="DATABASE_NAME")
    reports_collection: str = Field(default="reports", alias="REPORTS_COLLECTION")

    # Sessions
    jwt_secret: str = Field(default="dev-secret-change", alias="JWT_SECRET")
    jwt_alg: str = Field(default="HS256", alias="JWT_ALG")
    session_expire_minutes: int = Field(default=60 * 24 * 5, alias="SESSION_EXPIRE_MINUTES")

    # Identity provider (ID tokens exchanged for sessions)
    idp_public_key: Optional[str] = Field(default=None, alias="IDP_PUBLIC_KEY")
    idp_algorithm: str = Field(default="RS256", alias="IDP_ALGORITHM")
    idp_audience: Optional[str] = Field(default=None, alias="IDP_AUDIENCE")
    idp_issuer: Optional[str] = Field(default=None, alias="IDP_ISSUER")

    # Road-name address lookup
    road_name_api_key: Optional[str] = Field(default=None, alias="ROAD_NAME_API_KEY")
    road_name_api_url: str = Field(
        default="https://business.juso.go.kr/addrlink/addrLinkApi.do",
        alias="ROAD_NAME_API_URL",
    )

    # Geocoding
    naver_map_client_id: Optional[str] = Field(default=None, alias="NAVER_MAP_CLIENT_ID")
    naver_map_client_secret: Optional[str] = Field(default=None, alias="NAVER_MAP_CLIENT_SECRET")
    geocode_api_url: str = Field(
        default="https://naveropenapi.apigw.ntruss.com/map-geocode/v2/geocode",
        alias="GEOCODE_API_URL",
    )
    http_timeout_seconds: float = Field(default=10.0, alias="HTTP_TIMEOUT_SECONDS")

    # Eligibility
    initial_quota: int = Field(default=5, alias="INITIAL_QUOTA")
    cooldown_days: int = Field(default=180, alias="COOLDOWN_DAYS")
    exempt_identities_raw: Optional[str] = Field(default=None, alias="EXEMPT_IDENTITIES")

    # Reports
    noise_types_raw: Optional[str] = Field(default=None, alias="NOISE_TYPES")
    latest_limit_max: int = Field(default=50, alias="LATEST_LIMIT_MAX")

    # Runtime
    cors_origins_raw: str = Field(default="*", alias="CORS_ORIGINS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @property
    def exempt_identities(self) -> frozenset:
        return frozenset(_split_csv(self.exempt_identities_raw))

    @property
    def noise_types(self) -> List[str]:
        return _split_csv(self.noise_types_raw) or list(DEFAULT_NOISE_TYPES)

    @property
    def cors_origins(self) -> List[str]:
        return _split_csv(self.cors_origins_raw) or ["*"]

    @property
    def cooldown_ms(self) -> int:
        return self.cooldown_days * 24 * 60 * 60 * 1000


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
