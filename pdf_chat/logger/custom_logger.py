import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# Libraries that flood the console at INFO level
NOISY_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "sqlalchemy.orm": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "urllib3": logging.WARNING,
    "faiss": logging.WARNING,
    "pypdf": logging.ERROR,
}


class CustomLogger:
    """
    Configures the root logger once with a Rich console handler and hands out
    named loggers for the project.
    """

    _configured = False

    def __init__(self, level: int = logging.INFO):
        if not CustomLogger._configured:
            console = Console(force_terminal=True, color_system="truecolor")

            logging.basicConfig(
                level=level,
                format="%(message)s",  # Rich handles formatting
                datefmt="[%H:%M:%S.%f]",
                handlers=[
                    RichHandler(
                        console=console,
                        rich_tracebacks=True,
                        tracebacks_show_locals=False,
                        show_time=True,
                        show_level=True,
                        show_path=True,
                        log_time_format="%H:%M:%S.%f",
                    )
                ],
            )

            for name, lvl in NOISY_LOGGERS.items():
                logging.getLogger(name).setLevel(lvl)

            CustomLogger._configured = True

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        return logging.getLogger(name or "pdf_chat")
