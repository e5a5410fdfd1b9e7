"""Custom exceptions for the shopmock application."""


class ShopError(Exception):
    """Base exception for all application errors."""
    kind = 'ShopError'

    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['error'] = self.message
        rv['kind'] = self.kind
        return rv


# =====================================================
# VALIDATION (400)
# =====================================================

class ValidationError(ShopError):
    """Bad or missing input."""
    kind = 'ValidationError'

    def __init__(self, message="Invalid input", payload=None):
        super().__init__(message, 400, payload)


class InvalidInputError(ValidationError):
    kind = 'InvalidInput'


class MissingFieldsError(ValidationError):
    kind = 'MissingFields'

    def __init__(self, message="All fields required", fields=None):
        super().__init__(message, {'fields': list(fields)} if fields else None)


class EmptyCartError(ValidationError):
    kind = 'EmptyCart'

    def __init__(self, message="Cart is empty"):
        super().__init__(message)


class InvalidCouponError(ValidationError):
    kind = 'InvalidCoupon'

    def __init__(self, message="Invalid coupon code"):
        super().__init__(message)


class InvalidProductIdError(ValidationError):
    kind = 'InvalidProductId'

    def __init__(self, message="Invalid product ID"):
        super().__init__(message)


class InvalidQuantityError(ValidationError):
    kind = 'InvalidQuantity'

    def __init__(self, message="Invalid quantity"):
        super().__init__(message)


# =====================================================
# NOT FOUND (404)
# =====================================================

class NotFoundError(ShopError):
    """Exception raised when a resource is not found."""
    kind = 'NotFound'

    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class ProductNotFoundError(NotFoundError):
    kind = 'ProductNotFound'

    def __init__(self, message="Product not found"):
        super().__init__(message)


class ItemNotInCartError(NotFoundError):
    kind = 'ItemNotInCart'

    def __init__(self, message="Item not in cart"):
        super().__init__(message)


class UserNotFoundError(NotFoundError):
    kind = 'UserNotFound'

    def __init__(self, message="User not found"):
        super().__init__(message)


# =====================================================
# CONFLICT
# =====================================================

class ConflictError(ShopError):
    """Operation conflicts with current stock, caps or references."""
    kind = 'Conflict'

    def __init__(self, message, status_code=409, payload=None):
        super().__init__(message, status_code, payload)


class InsufficientStockError(ConflictError):
    """Raised when an operation fails due to lack of stock."""
    kind = 'InsufficientStock'

    def __init__(self, available, product_id=None, requested=None):
        self.available = available
        self.product_id = product_id
        self.requested = requested
        payload = {'available': available}
        if product_id is not None:
            payload['productId'] = product_id
        super().__init__('Not enough stock', status_code=400, payload=payload)


class MaxQuantityExceededError(ConflictError):
    kind = 'MaxQuantityExceeded'

    def __init__(self, limit):
        self.limit = limit
        super().__init__(f'Maximum {limit} per item', status_code=400, payload={'max': limit})


class ProductInUseError(ConflictError):
    kind = 'ProductInUse'

    def __init__(self, message="Product in cart - cannot delete"):
        super().__init__(message)


class UsernameTakenError(ConflictError):
    kind = 'UsernameTaken'

    def __init__(self, message="Username already taken"):
        super().__init__(message)


class CheckoutInProgressError(ConflictError):
    kind = 'CheckoutInProgress'

    def __init__(self, message="Checkout already in progress"):
        super().__init__(message)


# =====================================================
# AUTH (401 / 403)
# =====================================================

class AuthError(ShopError):
    """Missing or invalid identity."""
    kind = 'AuthError'

    def __init__(self, message="Access token required", status_code=401):
        super().__init__(message, status_code)


class ForbiddenError(AuthError):
    """Raised when an identity lacks privilege for an action."""
    kind = 'Forbidden'

    def __init__(self, message="Admin access required"):
        super().__init__(message, 403)


class AccountLockedError(AuthError):
    kind = 'AccountLocked'

    def __init__(self, message="Sorry, this user has been locked out."):
        super().__init__(message, 403)


# =====================================================
# RATE LIMIT / INJECTED FAILURE
# =====================================================

class RateLimitError(ShopError):
    kind = 'RateLimited'

    def __init__(self, retry_after_seconds, message="Too many requests"):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(message, 429, {'retryAfter': retry_after_seconds})


class InjectedFailureError(ShopError):
    """Deliberate, deterministic failure used as a test fixture."""
    kind = 'InjectedFailure'

    def __init__(self, message="Checkout failed (error_user)"):
        super().__init__(message, 500)
