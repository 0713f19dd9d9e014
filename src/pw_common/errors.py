"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Identity/Authorization
  2xxx: Account
  3xxx: Market lifecycle
  4xxx: Wager
  9xxx: System
"""

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION"
    AUTHORIZATION = "AUTHORIZATION"
    STATE_CONFLICT = "STATE_CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    TRANSIENT = "TRANSIENT"
    INTERNAL = "INTERNAL"


class AppError(Exception):
    """Base application error."""

    kind: ErrorKind = ErrorKind.INTERNAL
    retryable: bool = False

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Identity/Authorization ---

class InvalidCredentialsError(AppError):
    kind = ErrorKind.AUTHORIZATION

    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired credentials", 401)


class ForbiddenError(AppError):
    kind = ErrorKind.AUTHORIZATION

    def __init__(self, detail: str) -> None:
        super().__init__(1002, f"Forbidden: {detail}", 403)


# --- 2xxx: Account ---

class InsufficientFundsError(AppError):
    kind = ErrorKind.VALIDATION

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient funds: required {required}, available {available}",
            422,
        )


class AccountNotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, account_id: object) -> None:
        super().__init__(2002, f"Account not found: {account_id}", 404)


class BailoutNotEligibleError(AppError):
    kind = ErrorKind.STATE_CONFLICT

    def __init__(self, balance: int) -> None:
        super().__init__(2003, f"Bailout not available: balance is {balance}", 422)


class BailoutCooldownError(AppError):
    kind = ErrorKind.STATE_CONFLICT

    def __init__(self, available_at: str) -> None:
        super().__init__(2004, f"Bailout cooldown active until {available_at}", 429)


# --- 3xxx: Market lifecycle ---

class MarketNotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, market_id: int) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


class MarketNotOpenError(AppError):
    kind = ErrorKind.STATE_CONFLICT

    def __init__(self, market_id: int, status: str) -> None:
        super().__init__(3002, f"Market {market_id} is not open for wagers (status={status})", 409)


class MarketExpiredError(AppError):
    kind = ErrorKind.STATE_CONFLICT

    def __init__(self, market_id: int) -> None:
        super().__init__(3003, f"Market {market_id} betting deadline has passed", 409)


class InvalidStateTransitionError(AppError):
    kind = ErrorKind.STATE_CONFLICT

    def __init__(self, market_id: int, current: str, target: str) -> None:
        super().__init__(
            3004,
            f"Market {market_id} cannot move from {current} to {target}",
            409,
        )


class NotFinalizableError(AppError):
    kind = ErrorKind.STATE_CONFLICT

    def __init__(self, market_id: int, status: str) -> None:
        super().__init__(3005, f"Market {market_id} cannot be finalized (status={status})", 409)


class InvalidQuestionError(AppError):
    kind = ErrorKind.VALIDATION

    def __init__(self, detail: str) -> None:
        super().__init__(3006, f"Invalid question: {detail}", 422)


class InvalidDeadlineError(AppError):
    kind = ErrorKind.VALIDATION

    def __init__(self, detail: str) -> None:
        super().__init__(3007, f"Invalid deadline: {detail}", 422)


# --- 4xxx: Wager ---

class InvalidOutcomeError(AppError):
    kind = ErrorKind.VALIDATION

    def __init__(self, outcome: object) -> None:
        super().__init__(4001, f"Invalid outcome {outcome!r}: must be 'YES' or 'NO'", 422)


class InvalidAmountError(AppError):
    kind = ErrorKind.VALIDATION

    def __init__(self, amount: object) -> None:
        super().__init__(4002, f"Invalid amount {amount!r}: must be a positive integer", 422)


# --- 9xxx: System ---

class InternalError(AppError):
    kind = ErrorKind.INTERNAL

    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class TransientStoreError(AppError):
    kind = ErrorKind.TRANSIENT
    retryable = True

    def __init__(self, detail: str = "Store temporarily unavailable, retry the operation") -> None:
        super().__init__(9003, detail, 503)
