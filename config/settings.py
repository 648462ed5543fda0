"""Configuration management for the draft server and bot."""
from typing import Optional
import os
from pydantic import BaseModel, Field
from dotenv import load_dotenv

class DatabaseConfig(BaseModel):
    """Database configuration settings."""
    url: str = Field(
        default="sqlite+aiosqlite:///draft.db",
        description="Database connection URL"
    )

class LoggingConfig(BaseModel):
    """Logging configuration settings."""
    level: str = Field(
        default="INFO",
        description="Logging level"
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format"
    )
    file: Optional[str] = Field(
        default="draft.log",
        description="Log file name under logs/ (empty to disable)"
    )

class WebConfig(BaseModel):
    """Web server configuration settings."""
    host: str = Field(
        default="0.0.0.0",
        description="Web server host"
    )
    port: int = Field(
        default=8080,
        description="Web server port"
    )
    enabled: bool = Field(
        default=True,
        description="Whether to enable the web server"
    )

class DraftConfig(BaseModel):
    """Draft engine configuration settings."""
    default_pick_time_limit_seconds: int = Field(
        default=120,
        description="Pick clock used when a draft does not specify one"
    )
    min_pick_time_limit_seconds: int = Field(
        default=10,
        description="Shortest allowed pick clock"
    )
    max_pick_time_limit_seconds: int = Field(
        default=86400,  # 1 day, for slow asynchronous drafts
        description="Longest allowed pick clock"
    )
    max_rounds: int = Field(
        default=60,
        description="Maximum number of rounds in a draft"
    )
    timer_update_interval_seconds: float = Field(
        default=5,
        description="How often TimerUpdate events are published"
    )
    auto_pick_enabled: bool = Field(
        default=True,
        description="Whether expired pick clocks trigger an auto-pick"
    )
    auto_pick_retry_seconds: float = Field(
        default=5,
        description="Delay before retrying a failed auto-pick"
    )

class DiscordConfig(BaseModel):
    """Discord bot configuration settings."""
    token: Optional[str] = Field(
        default=None,
        description="Discord bot token; the bot is not started without one"
    )
    guild_id: Optional[str] = Field(
        default=None,
        description="Main guild ID for slash command registration"
    )
    announce_channel_id: Optional[str] = Field(
        default=None,
        description="Channel that receives live draft announcements"
    )
    commissioner_role_id: Optional[str] = Field(
        default=None,
        description="Role ID allowed to start, pause, resume and cancel drafts"
    )

class AppConfig(BaseModel):
    """Main application configuration."""
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig,
        description="Database settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging settings"
    )
    web: WebConfig = Field(
        default_factory=WebConfig,
        description="Web server settings"
    )
    draft: DraftConfig = Field(
        default_factory=DraftConfig,
        description="Draft engine settings"
    )
    discord: DiscordConfig = Field(
        default_factory=DiscordConfig,
        description="Discord bot settings"
    )
    command_prefix: str = Field(
        default="!",
        description="Command prefix for text commands"
    )

def _database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    db_path = os.getenv("DRAFT_DB_PATH")
    if db_path:
        return "sqlite+aiosqlite:///" + db_path
    return DatabaseConfig().url

def load_config() -> AppConfig:
    """Load configuration from environment variables."""
    # Load environment variables from .env file
    load_dotenv()

    return AppConfig(
        database=DatabaseConfig(url=_database_url()),
        logging=LoggingConfig(
            level=os.getenv("LOG_LEVEL", "INFO"),
            format=os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
            file=os.getenv("LOG_FILE", "draft.log") or None
        ),
        web=WebConfig(
            host=os.getenv("WEB_HOST", "0.0.0.0"),
            port=int(os.getenv("WEB_PORT", "8080")),
            enabled=os.getenv("WEB_ENABLED", "true").lower() == "true"
        ),
        draft=DraftConfig(
            default_pick_time_limit_seconds=int(os.getenv("DRAFT_PICK_TIME_LIMIT", "120")),
            min_pick_time_limit_seconds=int(os.getenv("DRAFT_MIN_PICK_TIME_LIMIT", "10")),
            max_pick_time_limit_seconds=int(os.getenv("DRAFT_MAX_PICK_TIME_LIMIT", "86400")),
            max_rounds=int(os.getenv("DRAFT_MAX_ROUNDS", "60")),
            timer_update_interval_seconds=float(os.getenv("DRAFT_TIMER_INTERVAL", "5")),
            auto_pick_enabled=os.getenv("DRAFT_AUTO_PICK", "true").lower() == "true",
            auto_pick_retry_seconds=float(os.getenv("DRAFT_AUTO_PICK_RETRY", "5"))
        ),
        discord=DiscordConfig(
            token=os.getenv("TOKEN"),
            guild_id=os.getenv("GUILD_ID"),
            announce_channel_id=os.getenv("DRAFT_ANNOUNCE_CHANNEL_ID"),
            commissioner_role_id=os.getenv("COMMISSIONER_ROLE_ID")
        ),
        command_prefix=os.getenv("COMMAND_PREFIX", "!")
    )
