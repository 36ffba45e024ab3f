from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DB_URL: str = "sqlite:///./reviewsync.db"
    REDIS_URL: str = "redis://localhost:6379/0"
    ROOT_URL: str = "http://localhost/"
    HTTP_TIMEOUT: float = 30.0
    TASK_RETRIES: int = 0
    RETRY_BACKOFF: int = 2
    RETRY_BACKOFF_MAX: int = 600
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
DB_URL = settings.DB_URL
REDIS_URL = settings.REDIS_URL
BROKER_URL = REDIS_URL
RESULT_BACKEND = REDIS_URL
