import logging
import colorlog
from pathlib import Path

class DraftContextFilter(logging.Filter):
    """Add draft context to log records."""
    def filter(self, record):
        # Ensure all records have certain attributes, even if empty
        for attr in ['draft_id', 'league_id', 'team_id']:
            if not hasattr(record, attr):
                setattr(record, attr, None)
        return True

def setup_logger(
    name: str,
    log_file: str = None,
    level: str = "INFO",
    file_format: str = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
) -> logging.Logger:
    """Set up a colored logger instance with optional file output."""

    # Get or create logger
    logger = logging.getLogger(name)

    # Clear any existing handlers
    if logger.hasHandlers():
        logger.handlers.clear()

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Add draft context filter
    logger.addFilter(DraftContextFilter())

    # Create console handler with colored formatting
    console_handler = colorlog.StreamHandler()
    console_handler.addFilter(DraftContextFilter())

    # Create colored formatter with context
    color_formatter = colorlog.ColoredFormatter(
        "%(asctime)s - %(log_color)s%(levelname)-8s%(reset)s - %(name)s - %(message)s"
        " [draft:%(draft_id)s league:%(league_id)s team:%(team_id)s]",
        datefmt="%Y-%m-%d %H:%M:%S",
        reset=True,
        log_colors={
            'DEBUG':    'cyan',
            'INFO':     'green',
            'WARNING':  'yellow',
            'ERROR':    'red',
            'CRITICAL': 'red,bg_white',
        }
    )

    console_handler.setFormatter(color_formatter)
    logger.addHandler(console_handler)

    # Add file handler if specified
    if log_file:
        log_dir = Path("logs")
        log_dir.mkdir(exist_ok=True)

        file_handler = logging.FileHandler(
            filename=log_dir / log_file,
            encoding="utf-8",
            mode="a"
        )
        file_handler.addFilter(DraftContextFilter())
        # Detailed formatter for file logs
        file_formatter = logging.Formatter(
            file_format +
            " [draft:%(draft_id)s league:%(league_id)s team:%(team_id)s]",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger
