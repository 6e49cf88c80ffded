from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ROLLWRIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Ceilings checked while building an expression, before any die is rolled.
    max_dice: int = 5000
    max_sides: int = 5000
    max_repeat: int = 5000

    # Caps for open-ended modifiers. Reaching one stops iterating, it is not an error.
    # Replacements per die for `ir`.
    max_rerolls: int = 100
    # Bonus dice per term for `ie` / `!`.
    max_explosions: int = 100


settings = Settings()
