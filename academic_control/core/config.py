from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Fresh random codes tried before class creation gives up
    class_code_max_attempts: int = Field(10, alias="CLASS_CODE_MAX_ATTEMPTS")
    # True restores the loose "every authenticated user reads every profile" behaviour
    open_profile_directory: bool = Field(False, alias="OPEN_PROFILE_DIRECTORY")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
