"""Rejections raised by the order service and their HTTP status codes."""


class OrderServiceError(Exception):
    """Base class for every rejection the service reports to callers."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidInput(OrderServiceError):
    status_code = 400
    message = "user_id, product_id, and quantity are required"


class UserNotFound(OrderServiceError):
    status_code = 400
    message = "User not found"


class ProductNotFound(OrderServiceError):
    status_code = 400
    message = "Product not found"


class OrderNotFound(OrderServiceError):
    status_code = 404
    message = "Order not found"


class InternalError(OrderServiceError):
    status_code = 500
