"""
Schema package for API request/response models.
"""

from .response import (
    BaseResponse,
    SuccessResponse,
    ErrorResponse,
    FieldError,
    EmailVerificationStatus,
    VerifiedSuccessResponse,
)
from .auth import (
    RegisterRequest,
    LoginRequest,
    RefreshRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    UpdateProfileRequest,
    UserOut,
    TokenOut,
    AuthResponse,
)
from .order import (
    OrderItemIn,
    CreateOrderRequest,
    UpdateOrderRequest,
    OrderOut,
    OrderItemOut,
    OrderWithItemsOut,
    AdminOrderOut,
)
from .catalog import (
    CreateProductRequest,
    UpdateProductRequest,
    ProductOut,
    CategoryOut,
)

__all__ = [
    # Response schemas
    "BaseResponse",
    "SuccessResponse",
    "ErrorResponse",
    "FieldError",
    "EmailVerificationStatus",
    "VerifiedSuccessResponse",
    # Auth schemas
    "RegisterRequest",
    "LoginRequest",
    "RefreshRequest",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "UpdateProfileRequest",
    "UserOut",
    "TokenOut",
    "AuthResponse",
    # Order schemas
    "OrderItemIn",
    "CreateOrderRequest",
    "UpdateOrderRequest",
    "OrderOut",
    "OrderItemOut",
    "OrderWithItemsOut",
    "AdminOrderOut",
    # Catalog schemas
    "CreateProductRequest",
    "UpdateProductRequest",
    "ProductOut",
    "CategoryOut",
]
