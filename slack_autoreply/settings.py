"""Settings for the Slack auto-reply webhook server.

Values come from process environment variables and an optional ``.env``
file. When both define a value the ``.env`` file wins, so a checked-out
deployment directory fully describes the running bot.

Environment Variables
=====================
- ``SLACK_BOT_TOKEN`` / ``SLACK_TOKEN``: bot token used to post replies
- ``SLACK_SIGNING_SECRET``: shared secret used to verify inbound callbacks
- ``HOST`` / ``PORT``: bind address of the HTTP server (default ``0.0.0.0:8080``)
- ``REPLAY_WINDOW_SECONDS``: maximum accepted age of a signed request (default 300)
- ``LOG_LEVEL``, ``LOG_FILE``, ``LOG_DIR``, ``LOG_FORMAT``: logging options
"""

from enum import Enum
from typing import Optional

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

__all__: list[str] = [
    "LogLevel",
    "MissingCredentialsError",
    "SettingModel",
    "get_settings",
    "get_test_environment",
]

DEFAULT_REPLAY_WINDOW_SECONDS: int = 5 * 60


class MissingCredentialsError(RuntimeError):
    """Raised when the bot token or the signing secret is not configured."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"{' and '.join(missing)} must be set in the environment or .env file")


class LogLevel(str, Enum):
    """Supported logging levels."""

    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    DEBUG = "DEBUG"
    NOTSET = "NOTSET"


class TestEnvironment(BaseSettings):
    """
    Test-specific environment settings.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
    )

    # Lets test runs ignore a developer's local .env file
    no_env_file: bool = Field(default=False, alias="SLACK_AUTOREPLY_NO_ENV_FILE")


class SettingModel(BaseSettings):
    """
    Configuration model for the Slack auto-reply server.
    Loads values from environment variables or a .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Slack API credentials
    slack_bot_token: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("SLACK_BOT_TOKEN", "SLACK_TOKEN")
    )
    slack_signing_secret: Optional[SecretStr] = Field(default=None)

    # HTTP server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1, le=65535)

    # Request authentication
    replay_window_seconds: int = Field(default=DEFAULT_REPLAY_WINDOW_SECONDS, gt=0)

    # Logging settings
    log_level: LogLevel = Field(default=LogLevel.INFO)
    log_file: Optional[str] = Field(default=None)
    log_dir: str = Field(default="logs")
    log_format: str = Field(default="%(asctime)s [%(levelname)8s] %(name)s: %(message)s")

    @field_validator("slack_bot_token", "slack_signing_secret", mode="before")
    @classmethod
    def blank_secret_is_unset(cls, v):
        """Treat empty or whitespace-only secrets as not configured."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept log levels in any case."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    def require_credentials(self) -> tuple[str, str]:
        """Return the bot token and signing secret, failing if either is missing.

        Returns
        -------
        tuple[str, str]
            The bot token and the signing secret

        Raises
        ------
        MissingCredentialsError
            If the bot token or the signing secret is not configured
        """
        missing: list[str] = []
        if self.slack_bot_token is None:
            missing.append("SLACK_BOT_TOKEN")
        if self.slack_signing_secret is None:
            missing.append("SLACK_SIGNING_SECRET")
        if missing:
            raise MissingCredentialsError(missing)
        return self.slack_bot_token.get_secret_value(), self.slack_signing_secret.get_secret_value()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """
        Customize the settings sources to prioritize .env file over environment variables.
        This matches the behavior of load_dotenv(override=True) in the entry point.
        """
        return init_settings, dotenv_settings, env_settings, file_secret_settings


_settings: Optional[SettingModel] = None
_test_env: Optional[TestEnvironment] = None


def get_settings(
    env_file: Optional[str] = ".env", no_env_file: bool = False, force_reload: bool = False, **kwargs
) -> SettingModel:
    """
    Get the global settings instance.

    Parameters
    ----------
    env_file : Optional[str], optional
        Path to the .env file, by default ".env"
    no_env_file : bool, optional
        Whether to skip loading the .env file, by default False
    force_reload : bool, optional
        Whether to force a reload of the settings, by default False
    **kwargs
        Additional settings to override

    Returns
    -------
    SettingModel
        The settings instance
    """
    global _settings

    if get_test_environment().no_env_file:
        no_env_file = True

    if _settings is None or force_reload:
        actual_env_file = None if no_env_file else env_file
        _settings = SettingModel(_env_file=actual_env_file, **kwargs)
    return _settings


def get_test_environment(force_reload: bool = False) -> TestEnvironment:
    """
    Get the test environment settings instance.

    Parameters
    ----------
    force_reload : bool, optional
        Whether to force a reload of the test environment settings, by default False

    Returns
    -------
    TestEnvironment
        The test environment settings instance
    """
    global _test_env

    if _test_env is None or force_reload:
        _test_env = TestEnvironment()
    return _test_env

