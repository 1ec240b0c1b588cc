import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class NoticeLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str
    link: Optional[str] = None  # offered as a one-click copy target


Notifier = Callable[[Notice], None]

_LOG_LEVELS = {
    NoticeLevel.INFO: logging.INFO,
    NoticeLevel.SUCCESS: logging.INFO,
    NoticeLevel.WARNING: logging.WARNING,
    NoticeLevel.ERROR: logging.ERROR,
}


def log_notifier(notice: Notice) -> None:
    """Default notifier: route user-facing notices to the client logger."""
    if notice.link:
        logger.log(_LOG_LEVELS[notice.level], "%s (%s)", notice.message, notice.link)
    else:
        logger.log(_LOG_LEVELS[notice.level], "%s", notice.message)
