import logging
import os

from src.config import load_config

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def get_logger(name: str, filename: str, logs_dir: str = None) -> logging.Logger:
    """
    Return a named logger that writes to its own file under the logs directory.

    Each component keeps a dedicated log file so UI, gateway and chat logs are
    easy to separate. The directory defaults to `AppConfig.logs_dir`. The
    handler is only attached once, so Streamlit reruns and repeated imports do
    not duplicate lines.
    """
    logger = logging.getLogger(name)
    # avoid double-propagation to root handlers
    logger.propagate = False
    if not logger.handlers:
        logger.setLevel(logging.INFO)
        logs_dir = logs_dir or load_config().logs_dir
        try:
            os.makedirs(logs_dir, exist_ok=True)
            fh = logging.FileHandler(os.path.join(logs_dir, filename), encoding="utf-8")
            fh.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(fh)
        except OSError:
            # read-only working directory: keep logging usable without a file
            logger.addHandler(logging.NullHandler())
    return logger
