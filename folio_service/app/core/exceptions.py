from shared.utils.app_status_code import AppStatusCode


class BillingError(Exception):
    """Base class for folio / tax / rate business errors surfaced to the user."""
    http_status = 400
    status_code = AppStatusCode.OPERATION_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BillingError):
    http_status = 400
    status_code = AppStatusCode.REQUIRED_VALIDATION_ERROR


class CreditLimitExceeded(ValidationError):
    status_code = AppStatusCode.CREDIT_LIMIT_EXCEEDED


class NotFoundError(BillingError):
    http_status = 404
    status_code = AppStatusCode.NOT_FOUND


class FolioClosed(BillingError):
    http_status = 409
    status_code = AppStatusCode.FOLIO_CLOSED


class AlreadyVoided(BillingError):
    http_status = 409
    status_code = AppStatusCode.ALREADY_VOIDED


class BalanceNotZero(BillingError):
    http_status = 409
    status_code = AppStatusCode.BALANCE_NOT_ZERO


class ConflictError(BillingError):
    http_status = 409
    status_code = AppStatusCode.VERSION_CONFLICT


class StoreError(BillingError):
    http_status = 500
    status_code = AppStatusCode.OPERATION_FAILED


# ----------------- Chat assistant upstream -----------------
class AssistantError(Exception):
    http_status = 502
    status_code = AppStatusCode.ASSISTANT_UPSTREAM_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RateLimitedError(AssistantError):
    http_status = 429
    status_code = AppStatusCode.ASSISTANT_RATE_LIMITED


class QuotaExhaustedError(AssistantError):
    http_status = 402
    status_code = AppStatusCode.ASSISTANT_QUOTA_EXHAUSTED


class AssistantUpstreamError(AssistantError):
    pass
