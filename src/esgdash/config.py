"""Configuration loading and validation using Pydantic."""

import os
import re
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator


def expand_env_vars(value: str) -> str:
    """Expand ${VAR} style environment variables in a string."""
    pattern = re.compile(r"\$\{([^}]+)\}")

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        return os.environ.get(var_name, "")

    return pattern.sub(replacer, value)


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "./instance/esg.db"

    @field_validator("path", mode="before")
    @classmethod
    def expand_env(cls, v):
        """Expand environment variables in the connection string."""
        if isinstance(v, Path):
            return str(v)
        if isinstance(v, str):
            return expand_env_vars(v)
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    enabled: bool = True
    level: Literal["DEBUG", "INFO", "WARN", "WARNING", "ERROR"] = "INFO"
    format: Literal["splunk", "json"] = "splunk"
    file: Path | None = None


class ReviewConfig(BaseModel):
    """Identity strings used for submissions and reviews.

    There is no login; whoever runs the tool acts as these names.
    """

    reviewer_name: str = "Admin User"
    submitter_name: str = "Admin User"


class CatalogConfig(BaseModel):
    """Parameter catalog behaviour."""

    # Reject parameters whose normalized name is not a detail-table column
    strict_columns: bool = False


class SeedUserConfig(BaseModel):
    """User entry seeded into the in-memory user directory."""

    username: str
    email: str
    role: Literal["admin", "approver", "user"] = "user"
    status: Literal["active", "inactive"] = "active"


class WebConfig(BaseModel):
    """Web server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000


class Config(BaseModel):
    """Root configuration model."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    review: ReviewConfig = Field(default_factory=ReviewConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    web: WebConfig = Field(default_factory=WebConfig)
    users: list[SeedUserConfig] = Field(default_factory=list)


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, looks for config.yaml
                    in current directory.

    Returns:
        Validated Config object. Defaults are used when the file is missing.

    Raises:
        ValidationError: If config is invalid.
    """
    if config_path is None:
        config_path = Path("config.yaml")

    if not config_path.exists():
        return Config()

    with open(config_path) as f:
        raw_config = yaml.safe_load(f) or {}

    return Config(**raw_config)


def ensure_directories(config: Config) -> None:
    """Create directories for the SQLite file and log file if needed."""
    db_path = config.database.path
    if "://" not in db_path:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    if config.logging.file:
        config.logging.file.parent.mkdir(parents=True, exist_ok=True)
