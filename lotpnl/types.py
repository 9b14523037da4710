from __future__ import annotations
from enum import Enum


class LotKind(str, Enum):
    BUY = "buy"
    SELL = "sell"

    @classmethod
    def parse(cls, value) -> "LotKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown lot kind '{value}'. Expected 'buy' or 'sell'") from None


class Method(str, Enum):
    FIFO = "FIFO"
    LIFO = "LIFO"

    @classmethod
    def parse(cls, value) -> "Method":
        if isinstance(value, cls):
            return value
        key = str(value).strip().upper()
        if key not in cls.__members__:
            raise ValueError(f"Unknown method '{value}'. Available: {', '.join(cls.__members__)}")
        return cls[key]
