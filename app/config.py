from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=BASE_DIR / ".env", env_file_encoding="utf-8")

    # Supabase (auth, credits, search history)
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""  # preferred over SUPABASE_KEY when set

    # Credits
    DEFAULT_CREDITS: int = 10  # balance given to a new profile

    # Scraping
    SCRAPE_PAGE_TIMEOUT: float = 30.0
    SCRAPE_FALLBACK_THRESHOLD: int = 5  # below this many images, run the aggressive pass

    # Image metadata
    RESOLVE_METADATA: bool = True
    METADATA_TIMEOUT: float = 10.0
    METADATA_CONCURRENCY: int = 8
    MAX_ALTERNATES_PER_IMAGE: int = 3

    # Download proxy
    DOWNLOAD_TIMEOUT: float = 20.0


settings = Settings()
