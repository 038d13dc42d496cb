from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    host: str = "0.0.0.0"  # noqa: S104
    port: int = Field(3000, validation_alias=AliasChoices("WABROKER_PORT", "PORT", "port"))
    debug: bool = False
    cors_origins: list[str] = ["*"]
    max_body_size: int = 10 * 1024 * 1024  # Largest accepted request body in bytes
    auth_path: str = ".wwebjs_auth"  # Root directory holding one auth directory per user
    # Import path of the backend client factory, "module:attribute"
    client_factory: str = "wabroker.core.modules.backend.browser:BrowserClient"
    browser_headless: bool = True
    idle_timeout: float = 120.0  # Seconds a session may stay unauthenticated before it is destroyed
    ready_timeout: float = 15.0  # Max seconds a send request waits for its session to become ready
    ready_poll_interval: float = 1.0
    start_grace_period: float = 2.0  # Seconds start-session waits before reporting state
    fetch_timeout: float = 30.0  # Timeout for remote media downloads
    recreate_window: float = 60.0  # Sliding window for counting automatic recreates after disconnect
    recreate_max_attempts: int = 3
    recreate_backoff: float = 2.0  # Base delay for the second and later recreates inside the window
    shutdown_timeout: float = 30.0  # Seconds uvicorn waits for sessions to close on shutdown

    model_config = {
        "env_file": [".env"],
        "env_prefix": "WABROKER_",
        "extra": "ignore",
        "populate_by_name": True,
    }
