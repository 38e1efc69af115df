from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongo_uri: str = "mongodb://localhost:27017"
    database_name: str = "storefront"
    products_collection: str = "products"

    # Listing defaults
    default_page: int = 1
    default_limit: int = 6
    max_page_limit: int = 100
    default_sort: str = "featured"
    all_categories_sentinel: str = "all"

    cors_origins: list[str] = ["http://localhost:3000"]

    # Header set by the upstream auth gateway once a session is established
    principal_header: str = "X-Auth-User"

    log_level: str = "INFO"
    debug: bool = False


settings = Settings()
