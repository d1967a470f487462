from loguru import logger
from artha_ai.config import LOG_DIR

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

# Shared by every file sink
SINK_OPTIONS = {
    "rotation": "10 MB",
    "retention": "1 month",
    "compression": "zip",
    "format": LOG_FORMAT,
    "backtrace": True,
    "diagnose": True,
}

# file name -> minimum level
SINKS = {
    "app.log": "DEBUG",
    "error.log": "ERROR",
}


def setup_logging(log_dir=LOG_DIR):
    """
    Route all research and polling logs to rotating files under log_dir.

    The terminal is left to the rich / Streamlit UI, so loguru's stderr
    handler is removed. Errors are duplicated into error.log with tracebacks.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    logger.remove()
    for filename, level in SINKS.items():
        logger.add(log_dir / filename, level=level, **SINK_OPTIONS)
    return logger


logger = setup_logging()
