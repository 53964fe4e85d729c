from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "assetflow"
    DATABASE_URL: str = "sqlite+pysqlite:///./assetflow.db"
    LOG_LEVEL: str = "INFO"
    METRICS_ENABLED: bool = True
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 200
    CENTRAL_WAREHOUSE_NAME: str = "Central Warehouse"
    SEED_CENTRAL_WAREHOUSE: bool = True
    OPS_ENABLE_INTEGRITY_SCAN: bool = True

settings = Settings()
