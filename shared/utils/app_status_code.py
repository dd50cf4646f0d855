class AppStatusCode:
    # Success
    DATA_RETRIEVED_SUCCESSFULLY = "200"
    OPERATION_SUCCESSFUL = "201"

    # Input / business rule failures
    INVALID_INPUT = "1001"
    REQUIRED_VALIDATION_ERROR = "1002"
    OPERATION_ERROR = "1003"
    OPERATION_FAILED = "1004"
    NOT_FOUND = "1005"

    # Folio ledger
    FOLIO_CLOSED = "2001"
    ALREADY_VOIDED = "2002"
    BALANCE_NOT_ZERO = "2003"
    VERSION_CONFLICT = "2004"
    CREDIT_LIMIT_EXCEEDED = "2005"

    # Chat assistant upstream
    ASSISTANT_RATE_LIMITED = "3001"
    ASSISTANT_QUOTA_EXHAUSTED = "3002"
    ASSISTANT_UPSTREAM_ERROR = "3003"

    # Authentication
    AUTHENTICATION_TOKEN_INVALID = "4001"
    AUTHENTICATION_TOKEN_EXPIRED = "4002"
