"""Environment-backed settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration read from the environment or a .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DEBUG: bool = False
    SECRET_KEY: str = "dev-secret-change-me"
    ALLOWED_HOSTS: str = "localhost,127.0.0.1,testserver"

    DB_ENGINE: str = "django.db.backends.sqlite3"
    DB_NAME: str = "db.sqlite3"
    DB_USER: str = ""
    DB_PASSWORD: str = ""
    DB_HOST: str = ""
    DB_PORT: str = ""

    # KOMOJU
    KOMOJU_API_URL: str = "https://komoju.com/api/v1"
    KOMOJU_SECRET_KEY: str = ""
    KOMOJU_RETURN_URL: str = "http://localhost:3000/thank-you"
    PAYMENT_TIMEOUT_SECONDS: float = 30.0

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    @property
    def allowed_hosts_list(self) -> list[str]:
        return [h.strip() for h in self.ALLOWED_HOSTS.split(",") if h.strip()]


env = Settings()
