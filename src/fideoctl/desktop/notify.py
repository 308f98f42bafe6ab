"""User visible notices."""
import logging
from typing import Callable

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class Notice(BaseModel):
    """A toast-style message for the user."""
    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""
    destructive: bool = False


Notifier = Callable[[Notice], None]


def log_notifier(notice: Notice) -> None:
    """Notifier used when no UI is attached."""
    level = logging.WARNING if notice.destructive else logging.INFO
    logger.log(level, f"{notice.title}: {notice.description}" if notice.description else notice.title)
