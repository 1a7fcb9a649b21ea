"""Application configuration via environment variables."""

from pathlib import Path
from pydantic_settings import BaseSettings

from blendcurve.utils.constants import DEFAULT_CAPITAL_REQUIREMENTS, DEFAULT_DATASET_NAMES

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    database_url: str = "sqlite:///./blendcurve.db"
    data_dir: Path = PROJECT_ROOT / "data"  # where dataset CSV files live
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Statistics
    recent_window_days: int = 90

    # Per-unit capital requirement and display label per dataset file
    capital_requirements: dict[str, float] = dict(DEFAULT_CAPITAL_REQUIREMENTS)
    dataset_names: dict[str, str] = dict(DEFAULT_DATASET_NAMES)

    model_config = {"env_prefix": "BC_", "env_file": ".env"}

    def capital_table(self):
        """Freeze the configured capital requirements for injection into the blender."""
        from blendcurve.services.capital_blender import CapitalTable

        return CapitalTable.from_mappings(self.capital_requirements, self.dataset_names)


settings = Settings()
