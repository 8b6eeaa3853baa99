import os
from dataclasses import dataclass, replace
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    # Storage settings
    data_file: str = os.getenv("LIBRARY_DATA_FILE", "library-data.json")
    default_library_name: str = os.getenv("LIBRARY_DEFAULT_NAME", "Default Library")

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Library CLI")
    log_level: str = os.getenv("LIBRARY_LOG_LEVEL", "WARNING").upper()

    def with_data_file(self, data_file: str) -> "Settings":
        """Return a copy of these settings that persists to another file."""
        return replace(self, data_file=str(data_file))


settings = Settings()
