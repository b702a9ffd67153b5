from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    MARKETPLACE_API_BASE_URL: str = "http://localhost:9078"
    MARKETPLACE_API_TIMEOUT_SECONDS: float = 10.0
    # "http" or "mock"; empty picks mock in dev/local and http elsewhere.
    MARKETPLACE_BACKEND: str = ""

    PASSWORD_MIN_LENGTH: int = 6
    PROVIDER_HOME_PATH: str = "/home"

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"


settings = Settings()
