"""Application configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Default driver settings loaded from environment variables."""

    # chromedriver settings
    chromedriver_port: int = 9515
    chromedriver_url_base: str = ""
    chromedriver_threads: int = 4
    chromedriver_log_path: str = "chromedriver.log"

    # Firefox settings
    firefox_port_base: int = 7055
    lock_port_timeout: float = 60.0

    # Process lifecycle
    start_timeout: float = 20.0
    stop_timeout: float = 5.0
    poll_interval: float = 1.0
    pump_join_timeout: float = 2.0

    # HTTP transport
    request_timeout: float = 60.0

    # Logging
    debug: bool = False
    log_level: str = "INFO"

    class Config:
        env_prefix = "WIREDRIVER_"
        env_file = ".env"


settings = Settings()
