from __future__ import annotations

from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class SettlementCell(Generic[T]):
    """
    Ячейка с однократной записью: первый settle() выигрывает, остальные игнорируются.
    Проверка и запись идут без await между ними, поэтому в одном event loop это атомарно.
    """

    __slots__ = ("_settled", "_value")

    def __init__(self) -> None:
        self._settled = False
        self._value: Optional[T] = None

    @property
    def is_settled(self) -> bool:
        return self._settled

    @property
    def value(self) -> T:
        if not self._settled:
            raise RuntimeError("settlement cell is empty")
        return self._value  # type: ignore[return-value]

    def settle(self, value: T) -> bool:
        if self._settled:
            return False
        self._settled = True
        self._value = value
        return True
