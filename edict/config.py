from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Host settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="EDICT_")

    app_name: str = "Edict"
    log_level: str = "INFO"

    default_difficulty: str = "normal"

    # Empty means a seed is generated per game
    default_seed: str = ""

    # Snapshots kept for rewind, oldest evicted first
    rewind_history_limit: int = 10


settings = Settings()
