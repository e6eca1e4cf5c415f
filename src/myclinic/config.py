"""Client and API configuration loaded from environment variables."""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/141.0.0.0 Safari/537.36"
)


class ScraperConfig(BaseSettings):
    """Scraper configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Myclinic settings (browser-only clinic software, no API exists)
    myclinic_base_url: str = Field(
        default="https://myclinic.bemp.app",
        description="Myclinic site URL",
    )
    myclinic_subdomain: str = Field(
        default="myclinic",
        description="Organization subdomain sent with the login form",
    )
    myclinic_salon_id: str = Field(
        default="436",
        description="Salon (location) id used by the birthday report",
    )
    myclinic_email: str = Field(
        default="",
        description="Username for auto-login at startup",
    )
    myclinic_password: SecretStr = Field(
        default=SecretStr(""),
        description="Password for auto-login at startup",
    )

    # HTTP client settings
    detail_concurrency: int = Field(
        default=8,
        ge=1,
        description="Maximum in-flight event detail requests per agenda call",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout applied to every outbound request",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent header sent to the Myclinic site",
    )

    # API server
    api_host: str = Field(default="0.0.0.0", description="Bind address")
    api_port: int = Field(
        default=3000,
        validation_alias="PORT",
        description="Bind port",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def has_credentials(self) -> bool:
        return bool(self.myclinic_email and self.myclinic_password.get_secret_value())


# Singleton pattern
_config: ScraperConfig | None = None


def get_config() -> ScraperConfig:
    """Get the scraper configuration singleton.

    Returns:
        ScraperConfig: Scraper configuration instance
    """
    global _config
    if _config is None:
        _config = ScraperConfig()
    return _config
