from dataclasses import dataclass
from typing import Callable

LOADING = "loading"
SUCCESS = "success"
ERROR = "error"
WARNING = "warning"


@dataclass(frozen=True)
class Notice:
    level: str
    message: str
    key: str | None = None


Notify = Callable[[Notice], None]


def discard(notice: Notice) -> None:
    return None
