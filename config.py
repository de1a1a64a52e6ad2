import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "4000"))

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Book Catalog API")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = _env_flag("DEBUG", "False")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Catalog settings
    seed_catalog: bool = _env_flag("SEED_CATALOG", "True")


settings = Settings()
