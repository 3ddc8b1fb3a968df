# todo_manage/result.py
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")
E = TypeVar("E")


class ReadErrorKind(str, Enum):
    NO_DATA = "noData"
    TRANSPORT = "transportError"


class WriteErrorKind(str, Enum):
    TRANSPORT = "transportError"
    CONSTRAINT_VIOLATION = "constraintViolation"


@dataclass(frozen=True)
class Result(Generic[T, E]):
    """Either a value (``ok``) or an error kind (``err``).

    Callers check ``is_ok`` explicitly; there is no exception path.
    """

    value: Optional[T] = None
    error: Optional[E] = None

    @property
    def is_ok(self) -> bool:
        return self.error is None


def ok(value=None) -> Result:
    return Result(value=value)


def err(error) -> Result:
    return Result(error=error)
