"""Errors raised by the prediction module."""

from __future__ import annotations

CODESPACE = "prediction"


class PredictionError(Exception):
    """Base error; registered errors carry a code within the module's codespace."""

    codespace = CODESPACE
    code: int | None = None
    message = "prediction error"

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        if self.code is None:
            return self.detail or self.message
        if self.detail:
            return f"{self.detail}: {self.message}"
        return self.message


class InvalidRequestError(PredictionError, ValueError):
    code = 1
    message = "invalid request"


class InvalidSignerError(PredictionError, ValueError):
    code = 1100
    message = "expected gov account as only signer for proposal message"


class MarketNotFoundError(PredictionError, LookupError):
    code = 1101
    message = "market not found"


class InvalidOutcomeError(PredictionError, ValueError):
    code = 1102
    message = "invalid outcome index"


class InvalidAmountError(PredictionError, ValueError):
    code = 1103
    message = "invalid amount"


class InsufficientFundsError(PredictionError):
    code = 1104
    message = "insufficient funds"


class InsufficientPositionError(PredictionError):
    code = 1105
    message = "insufficient position to sell"


class TransferFailedError(PredictionError):
    code = 1106
    message = "transfer failed"


class PositionUpdateFailedError(PredictionError):
    code = 1107
    message = "position update failed"


class OrderNotFoundError(PredictionError, LookupError):
    message = "order not found"


class OrderStateError(PredictionError):
    message = "invalid order state"