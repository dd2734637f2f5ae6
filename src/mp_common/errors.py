"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/Profile
  2xxx: Wallet
  3xxx: Catalog (products, plans)
  4xxx: Payments / webhook
  6xxx: Downloads
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

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


# --- 1xxx: Auth/Profile ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


class ProfileNotFoundError(AppError):
    def __init__(self, identifier: str) -> None:
        super().__init__(1006, f"Profile not found: {identifier}", 404)


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1007, "Admin privileges required", 403)


# --- 2xxx: Wallet ---

class InsufficientFundsError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient funds: required {required} kobo, available {available} kobo",
            422,
        )
        self.required = required
        self.available = available


class WalletNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Wallet not found for user {user_id}", 404)


class WithdrawalBelowMinimumError(AppError):
    def __init__(self, amount: int, minimum: int) -> None:
        super().__init__(
            2003,
            f"Withdrawal amount {amount} kobo is below the minimum of {minimum} kobo",
            422,
        )


class WithdrawalNotFoundError(AppError):
    def __init__(self, withdrawal_id: str) -> None:
        super().__init__(2004, f"Withdrawal request not found: {withdrawal_id}", 404)


class WithdrawalNotPendingError(AppError):
    def __init__(self, withdrawal_id: str, status: str) -> None:
        super().__init__(
            2005, f"Withdrawal {withdrawal_id} in status {status} cannot be processed", 422
        )


# --- 3xxx: Catalog ---

class ProductNotFoundError(AppError):
    def __init__(self, product_id: str) -> None:
        super().__init__(3001, f"Product not found: {product_id}", 404)


class PlanNotFoundError(AppError):
    def __init__(self, plan_id: str) -> None:
        super().__init__(3002, f"Subscription plan not found: {plan_id}", 404)


class PlanNotFreeError(AppError):
    def __init__(self, plan_id: str) -> None:
        super().__init__(3003, f"Subscription plan is not free: {plan_id}", 422)


# --- 4xxx: Payments ---

class InvalidSignatureError(AppError):
    def __init__(self) -> None:
        super().__init__(4001, "Invalid webhook signature", 401)


class MalformedWebhookError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4002, f"Malformed webhook payload: {detail}", 400)


class InvalidPaymentEventError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4003, f"Invalid payment event: {detail}", 422)


class DuplicateEventError(AppError):
    """Settlement already applied for this reference. Acknowledged with 200."""

    def __init__(self, reference: str) -> None:
        super().__init__(4004, f"Payment already settled: {reference}", 200)
        self.reference = reference


class InvalidAmountError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4005, f"Invalid amount: {detail}", 422)


class PaymentInitializationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4006, f"Payment initialization failed: {detail}", 502)


class GatewayUnavailableError(AppError):
    def __init__(self, detail: str = "Payment gateway unavailable") -> None:
        super().__init__(4007, detail, 502)


# --- 6xxx: Downloads ---

class DownloadNotAuthorizedError(AppError):
    def __init__(self) -> None:
        super().__init__(6001, "Download not authorized", 403)


class DownloadExpiredError(AppError):
    def __init__(self) -> None:
        super().__init__(6002, "Download link has expired", 403)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class SettlementFailedError(AppError):
    def __init__(self, reference: str, detail: str) -> None:
        super().__init__(9003, f"Settlement failed for {reference}: {detail}", 500)
