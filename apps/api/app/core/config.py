from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./backoffice.db"
    jwt_secret_key: str = "your-secret-key-change-in-production"  # Default for development
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Comma-separated list, e.g. "http://localhost:3000,https://ops.example.com"
    cors_origins: str = ""

    log_level: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
