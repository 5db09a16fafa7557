from __future__ import annotations

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from codebase_kg.core import constants as cs
from codebase_kg.infrastructure import exceptions as ex

load_dotenv()


class AppConfig(BaseSettings):
    """Application settings, loaded from environment variables or a .env file.

    This class uses Pydantic's `BaseSettings` to automatically load and validate
    configuration from the environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    MEMGRAPH_HOST: str = "localhost"
    MEMGRAPH_PORT: int = Field(7687, gt=0)
    MEMGRAPH_USERNAME: str | None = None
    MEMGRAPH_PASSWORD: str | None = None
    MEMGRAPH_BATCH_SIZE: int = 1000
    MEMGRAPH_MULTI_TENANT: bool = True

    GRAPH_DB_READY_RETRIES: int = Field(10, ge=1)
    GRAPH_DB_READY_DELAY: float = Field(1.0, ge=0)
    DEFAULT_DATABASE: str = cs.MEMGRAPH_DEFAULT_DATABASE

    TARGET_REPO_PATH: str = "."
    SOURCE_DIR: str = "src"
    EXCLUDE_DIRS: frozenset[str] = cs.DEFAULT_EXCLUDE_DIRS

    EXTRACT_PARALLEL: bool = False
    EXTRACT_WORKERS: int = Field(4, ge=1)

    LOG_LEVEL: str = "INFO"
    QUIET: bool = Field(False, validation_alias="CKG_QUIET")

    def resolve_batch_size(self, batch_size: int | None) -> int:
        """Resolves the batch size, using the CLI value or falling back to settings.

        Args:
            batch_size (int | None): The batch size provided via CLI.

        Returns:
            int: The resolved batch size.

        Raises:
            ValueError: If the resolved batch size is less than 1.
        """
        resolved = self.MEMGRAPH_BATCH_SIZE if batch_size is None else batch_size
        if resolved < 1:
            raise ValueError(ex.BATCH_SIZE)
        return resolved


settings = AppConfig()
