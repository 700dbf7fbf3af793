"""Настройка логирования (loguru + перехват stdlib logging)."""

import logging
import sys

from loguru import logger


class InterceptHandler(logging.Handler):
    """Перенаправить записи stdlib logging в loguru.

    Нужен для uvicorn, SQLAlchemy, celery и aiogram, которые пишут
    через стандартный `logging`.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(
            depth=depth,
            exception=record.exc_info,
        ).log(level, record.getMessage())


def setup_logging(level: str, *, enqueue: bool = True) -> None:
    """Настроить loguru и перехват stdlib logging.

    Parameters
    ----------
    level : str
        Уровень логирования (например, `INFO`).
    enqueue : bool, default=True
        Писать логи через очередь (безопасно для нескольких потоков/процессов).
    """

    logger.remove()
    logger.add(
        sys.stdout,
        level=level,
        enqueue=enqueue,
        backtrace=False,
        diagnose=False,
    )

    logging.root.handlers = [InterceptHandler()]
    logging.root.setLevel(level)
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error", "aiogram"):
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True
