from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):

    # Application
    APP_NAME: str = Field(default="dotnet-template")
    APP_VERSION: str = Field(default="0.1.0")

    # Environment
    ENV: str = Field(default="development")

    # Logging
    LOG_LEVEL: Optional[str] = Field(
        default=None,
        description="Minimum log level; inferred from ENV when unset",
    )
    LOG_DIR: str = Field(default="logs")
    LOG_TO_FILE: bool = Field(default=False, description="Write a per-run log file under LOG_DIR")

    # Toolchain
    DOTNET_EXECUTABLE: str = Field(default="dotnet", description="Path or name of the dotnet CLI")
    TOOLCHAIN_ENCODING: Optional[str] = Field(
        default=None,
        description="Encoding used to decode dotnet output; platform default when unset",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
