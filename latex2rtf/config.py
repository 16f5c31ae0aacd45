from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    LOG_LEVEL: str = "WARNING"
    LOG_FILE: str = ""

    # Embed warnings as red text in the RTF output
    RTF_WARNINGS: bool = False
    # Emit REF/PAGEREF fields and bookmarks for cross references
    USE_FIELDS: bool = True
    # Extra '}' appended to the end of the RTF file
    SAFETY_BRACES: int = 0

    MAX_BOOKMARKS: int = 5000
    MAX_CITATIONS: int = 1000

    PROFILE_PATH: str = ""

    model_config = {
        "env_prefix": "LATEX2RTF_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


settings = Settings()
