from typing import Literal

from dotenv import load_dotenv
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str
    secret_key: SecretStr
    algorithm: str = "HS256"

    redis_url: str | None = None

    minio_endpoint: str = "localhost:9000"
    minio_access_key: str = ""
    minio_secret_key: SecretStr = SecretStr("")
    minio_bucket: str = "images"
    minio_secure: bool = False

    cors_origins: str = "http://localhost:3000"
    cookie_secure: bool = False
    session_cookie_name: str = "session_id"
    session_expire_days: int = 7
    csrf_token_expire_minutes: int = 60 * 24

    request_timeout_seconds: float = 5.0
    max_upload_bytes: int = 10 << 20
    max_image_bytes: int = 5 << 20
    max_image_width: int = 2000
    max_image_height: int = 2000
    max_images_per_ad: int = 10

    priority_window_days: int = 7
    priority_reset_interval_seconds: int = 3600

    rpc_mode: Literal["grpc", "inprocess"] = "grpc"
    ads_rpc_addr: str = "localhost:50051"
    auth_rpc_addr: str = "localhost:50052"
    city_rpc_addr: str = "localhost:50053"

    gateway_host: str = "0.0.0.0"
    gateway_port: int = 8080

    log_level: str = "INFO"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


def get_settings() -> Settings:
    return Settings()
