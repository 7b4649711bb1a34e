"""Runtime settings loaded from environment variables."""

from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from digest_credentials.domain.auth.algorithm import AlgorithmDescriptor, parse_algorithm
from digest_credentials.domain.auth.digest import UnsupportedAlgorithmError, resolve_digest_name

NonEmptyStr = Annotated[str, Field(min_length=1)]


class Settings(BaseSettings):
    """Environment-driven credential store settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: NonEmptyStr = Field(validation_alias="DATABASE_URL")
    password_hash_algorithm: NonEmptyStr = Field(
        default="SHA-512/salted",
        validation_alias="PASSWORD_HASH_ALGORITHM",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @field_validator("password_hash_algorithm")
    @classmethod
    def _validate_password_hash_algorithm(cls, value: str) -> str:
        algorithm = parse_algorithm(value)
        try:
            resolve_digest_name(algorithm.name)
        except UnsupportedAlgorithmError as exc:
            raise ValueError(str(exc)) from exc
        return algorithm.as_string()

    @property
    def preferred_algorithm(self) -> AlgorithmDescriptor:
        """Algorithm used for every newly stored digest."""

        return parse_algorithm(self.password_hash_algorithm)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load and cache application settings."""

    return Settings()  # type: ignore[call-arg]
