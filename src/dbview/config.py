from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = []
    default_page_size: int = 50  # Used when a view does not set settings.pageSize
    max_page_size: int = 200  # Page size used when reading a whole database from the store
    # Property ids that "reset to default" keeps visible besides system/required ones
    default_visible_property_ids: list[str] = ["title", "name", "status"]
    seed_file: str | None = None  # JSON list of databases loaded into the in-memory store

    model_config = {
        "env_file": [".env"],
        "env_prefix": "DBVIEW_",
        "extra": "ignore",
    }
