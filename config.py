from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    SUPABASE_URL: Optional[str] = None
    SUPABASE_PROJECT_URL: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None

    PRODUCTS_TABLE: str = "client_products"
    INVENTORY_TABLE: str = "inventory_items"

    # Nesting ceiling for variant trees (Color -> Size -> Material)
    VARIANT_MAX_DEPTH: int = 3

    ADMIN_API_TOKEN: Optional[str] = None
    LOG_LEVEL: str = "INFO"
    # comma-separated; "*" allows any dashboard origin
    CORS_ORIGINS: str = "*"
    PDF_FOOTER_TEXT: str = "ClearPath Warehouse"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def supabase_url(self) -> Optional[str]:
        return self.SUPABASE_URL or self.SUPABASE_PROJECT_URL

    @property
    def supabase_key(self) -> Optional[str]:
        return self.SUPABASE_SERVICE_ROLE_KEY or self.SUPABASE_KEY

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()] or ["*"]

# Cache the settings instance for reuse
@lru_cache()
def get_settings() -> Settings:
    return Settings()
