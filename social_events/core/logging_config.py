import logging
from rich.logging import RichHandler
from social_events.core.config import get_settings

def setup_logging():
    """
    Configures logging for the entire application.

    Records go through a single rich console handler; uvicorn's loggers
    are pointed at the same handlers so access and error lines share the
    format.
    """
    settings = get_settings()
    log_level = settings.LOG_LEVEL.upper()

    logging.basicConfig(
        level=log_level,
        force=True,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )

    # Make uvicorn use the root logger config
    logging.getLogger("uvicorn.access").handlers = logging.getLogger().handlers
    logging.getLogger("uvicorn.error").handlers = logging.getLogger().handlers
