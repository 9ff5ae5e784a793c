from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    mongodb_uri: str = "mongodb://localhost:27017/pagebook"
    default_read_permissions: str = "anyone"
    default_write_permissions: str = "anyone"
    default_query_limit: int = 50
    max_query_limit: int = 1000
    api_root: str = "/api"
    reserved_paths: str = "api,pages,static"
    cors_origins: str = "*"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        extra="ignore",
    )

    def reserved_path_list(self) -> list[str]:
        return [part.strip() for part in self.reserved_paths.split(",") if part.strip()]

settings = Settings()
