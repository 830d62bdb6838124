from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application Settings.

    This class loads variables from the environment (or .env file).
    Pydantic automatically validates types and missing values.
    """

    # --- Core Settings ---
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars (like SYSTEM_*)
    )

    # Environment: dev or prod
    environment: Literal["dev", "prod"] = "dev"

    log_level: str = Field(default="INFO", description="Root logging level")

    # --- Supabase ---
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (https://<project>.supabase.co)",
    )
    supabase_key: Optional[SecretStr] = Field(
        default=None,
        description="Supabase service role or anon key with write access",
    )
    supabase_categories_table: str = Field(
        default="categories",
        description="Table keyed by category id",
    )
    supabase_subcategories_table: str = Field(
        default="subcategories",
        description="Table keyed by (category_id, id)",
    )
    supabase_resources_table: str = Field(
        default="resources",
        description="Table keyed by url",
    )

    # --- Sync ---
    sync_csv_path: str = Field(
        default="database-content.csv",
        description="Tabular export read when no --csv argument is given",
    )
    sync_max_workers: int = Field(
        default=4,
        description="Upper bound on concurrent store calls within one phase",
    )
    category_icon_template: str = Field(
        default="icon-{id}.svg",
        description="Icon reference assigned to derived categories",
    )
    category_description_template: str = Field(
        default="Resources related to {id}",
        description="Description assigned to derived categories",
    )

    @field_validator("sync_max_workers")
    @classmethod
    def _at_least_one_worker(cls, value: int) -> int:
        if value < 1:
            raise ValueError("SYNC_MAX_WORKERS must be at least 1")
        return value

    def validate_supabase_config(self):
        """Ensure Supabase credentials are present."""
        if not self.supabase_url:
            raise ValueError("SUPABASE_URL is required to sync the catalog.")
        if not self.supabase_key:
            raise ValueError("SUPABASE_KEY is required to sync the catalog.")


# Create a global settings object
settings = Settings()
