from enum import Enum


class FailureKind(str, Enum):
    VALIDATION = "validation"
    WALLET_UNAVAILABLE = "wallet_unavailable"
    GATEWAY_REJECTED = "gateway_rejected"
    WALLET_USER_CANCELLED = "wallet_user_cancelled"
    WALLET_PROVIDER_ERROR = "wallet_provider_error"
    RECONCILIATION_REJECTED = "reconciliation_rejected"
