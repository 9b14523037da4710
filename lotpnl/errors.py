from __future__ import annotations


class PnLError(Exception):
    """Base class for calculation failures."""


class InvalidNumberFormat(PnLError, ValueError):
    """A quantity or price is not a valid decimal literal."""

    def __init__(self, value, field: str | None = None, reason: str | None = None) -> None:
        self.value = value
        self.field = field
        where = f" for {field}" if field else ""
        msg = f"Invalid decimal{where}: {value!r}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class EmptyLotSet(PnLError, ValueError):
    """No lots were supplied for a calculation."""

    def __init__(self, msg: str = "no lots provided for calculation") -> None:
        super().__init__(msg)
