"""
Custom domain exceptions for consistent error handling.

These exceptions are mapped to HTTP status codes by the global exception handler
in main.py. Every rejected registry precondition has its own class and a stable
snake_case ``code``.
"""
from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    code = "domain_error"

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict | None = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.details = details or {}


class NotFoundError(DomainError):
    """Resource not found (404)."""
    code = "not_found"

    def __init__(self, resource_type: str, identifier: str, details: dict | None = None):
        message = f"{resource_type} not found: {identifier}"
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, details=details)


class ValidationError(DomainError):
    """Validation error (400)."""
    code = "validation_error"

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        if field:
            message = f"Validation error on {field}: {message}"
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class PermissionDeniedError(DomainError):
    """Permission denied (403)."""
    code = "permission_denied"

    def __init__(self, message: str = "Permission denied", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN, details=details)


class ConflictError(DomainError):
    """Resource conflict (409)."""
    code = "conflict"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, details=details)


# ── Registry errors ─────────────────────────────────────────────────


class UnauthorizedError(PermissionDeniedError):
    """Caller is not the registry administrator."""
    code = "unauthorized"

    def __init__(self, caller: str):
        super().__init__(
            "Caller is not the registry administrator",
            details={"caller": caller},
        )


class TokenNotFoundError(NotFoundError):
    """No current holder for the token id."""
    code = "token_not_found"

    def __init__(self, token_id: int):
        super().__init__("Pass", str(token_id), details={"token_id": token_id})


class MintingDisabledError(ConflictError):
    code = "minting_disabled"

    def __init__(self):
        super().__init__("Minting is currently disabled")


class ClaimingDisabledError(ConflictError):
    code = "claiming_disabled"

    def __init__(self):
        super().__init__("Token claiming is currently disabled")


class InsufficientPaymentError(DomainError):
    """Payment below the current mint price (402)."""
    code = "insufficient_payment"

    def __init__(self, paid_micro: int, price_micro: int):
        super().__init__(
            f"Insufficient payment: {paid_micro} < {price_micro} microAlgos",
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            details={"paid_micro": paid_micro, "price_micro": price_micro},
        )


class SupplyExhaustedError(ConflictError):
    code = "supply_exhausted"

    def __init__(self, max_supply: int):
        super().__init__(
            f"Max supply of {max_supply} passes reached",
            details={"max_supply": max_supply},
        )


class AlreadyMintedError(ConflictError):
    code = "already_minted"

    def __init__(self, wallet: str):
        super().__init__(
            "Wallet has already minted a pass",
            details={"wallet": wallet},
        )


class AlreadyClaimedError(ConflictError):
    code = "already_claimed"

    def __init__(self, token_id: int):
        super().__init__(
            f"Tokens already claimed for pass {token_id}",
            details={"token_id": token_id},
        )


class NotTokenOwnerError(PermissionDeniedError):
    code = "not_token_owner"

    def __init__(self, token_id: int, caller: str):
        super().__init__(
            f"Caller does not hold pass {token_id}",
            details={"token_id": token_id, "caller": caller},
        )


class MultiplierTooLowError(ValidationError):
    code = "multiplier_too_low"

    def __init__(self, multiplier: int, minimum: int):
        super().__init__(
            f"Multiplier must be >= {minimum}, got {multiplier}",
            field="multiplier",
            details={"multiplier": multiplier, "minimum": minimum},
        )


class InvalidPriceError(ValidationError):
    code = "invalid_price"

    def __init__(self):
        super().__init__("Mint price must be greater than zero", field="price")


class LengthMismatchError(ValidationError):
    code = "length_mismatch"

    def __init__(self, lengths: dict):
        super().__init__(
            "Batch sequences must have equal lengths",
            details={"lengths": lengths},
        )


class NoFundsError(ConflictError):
    code = "no_funds"

    def __init__(self):
        super().__init__("No funds held in custody")


class ReentrantCallError(DomainError):
    """A mutating call was attempted while another registry call is still running (423)."""
    code = "reentrant_call"

    def __init__(self, operation: str):
        super().__init__(
            f"Reentrant call to {operation} rejected while another registry call is in progress",
            status_code=status.HTTP_423_LOCKED,
            details={"operation": operation},
        )
