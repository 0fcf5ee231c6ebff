import logging
from pathlib import Path

from solana_tracker.config.settings import get_settings

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# chatty at INFO; only shown when running at DEBUG
_QUIET_LOGGERS = ("websockets", "httpx", "httpcore")


def setup_logging(settings=None, log_file: bool = True) -> None:
    """
    Initialize console + file logging for scripts built on the client.
    The library itself only logs; it never configures handlers on import.
    """
    settings = settings or get_settings()
    log_level = str(getattr(settings, "LOG_LEVEL", "INFO")).upper()
    log_path = Path(getattr(settings, "LOG_PATH", "logs/solana_tracker.log"))

    root = logging.getLogger()
    if root.handlers:
        # Already configured
        return

    root.setLevel(log_level)
    formatter = logging.Formatter(_FORMAT)

    handlers = [logging.StreamHandler()]
    file_error = None
    if log_file:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
        except OSError as e:
            file_error = e

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    if root.getEffectiveLevel() > logging.DEBUG:
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    if file_error is not None:
        logging.getLogger(__name__).warning("file logging disabled (%s): %s", log_path, file_error)
