from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from bookshelf.runtime.config.config_data import Environment


class EnvironmentVariables(BaseSettings):
    """Variables read before config.yaml: which environment, which file.

    Also picked up from a local `.env` file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    environment: Environment = Field(
        default="development", validation_alias="APP_ENVIRONMENT"
    )
    config_file: str = Field(
        default="config.yaml", validation_alias="BOOKSHELF_CONFIG_FILE"
    )
