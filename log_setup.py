# log_setup.py
import logging
from pathlib import Path


def setup_logger(name: str = "", log_dir: str = "logs", log_file: str = "app.log",
                 console_level: str = "INFO", file_level: str = "DEBUG"):
    """
    Set up a logger that writes to both console and a file in log_dir.

    Streamlit reruns the script on every interaction, so handlers are only
    attached the first time a given logger is configured.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)  # handlers do the filtering

    if not logger.handlers:
        ch = logging.StreamHandler()
        ch.setLevel(getattr(logging, console_level.upper(), logging.INFO))
        ch.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(ch)

        Path(log_dir).mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(Path(log_dir) / log_file, encoding="utf-8")
        fh.setLevel(getattr(logging, file_level.upper(), logging.DEBUG))
        fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(fh)

    return logger
