from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    database_url: str = "postgresql://localhost:5432/profitlens"
    pool_max_size: int = 10
    feature_profit_loss_report: bool = True
    report_cache_ttl_seconds: float = 45.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def model_post_init(self, __context):
        # A non-positive TTL disables report caching
        if self.report_cache_ttl_seconds < 0:
            self.report_cache_ttl_seconds = 0.0

settings = Settings()
