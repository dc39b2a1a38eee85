"""
Configuration settings for the Waleki telemetry service
"""

from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    """Application settings"""

    # Database
    db_host: str = "postgres"
    db_port: str = "5432"
    db_name: str = "waleki_db"
    db_user: str = "waleki_user"
    db_password: str = "waleki_password"
    database_url: str = ""

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False

    # Dashboard statistics
    stats_window_hours: int = 24

    # Ingestion
    max_batch_size: int = 100

    # Sessions
    session_ttl_hours: int = 24
    session_sweep_interval: int = 3600  # seconds
    bcrypt_rounds: int = 10
    demo_mode: bool = False

    # Startup
    seed_demo_data: bool = True

    # Device simulator
    simulator_base_url: str = "http://localhost:8000"
    simulator_interval: int = 60  # seconds
    simulator_device_ids: Optional[str] = None  # comma separated, e.g. "1,2,3"

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Build database_url from components unless given explicitly
        if not self.database_url:
            self.database_url = f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

# Global settings instance
settings = Settings()
