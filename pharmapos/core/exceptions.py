"""Error taxonomy for the point-of-sale core.

Client-fixable conditions (unknown ids, malformed requests, not enough
stock) are kept apart from storage failures so the HTTP layer can map
each to its own status code. Nothing here is retried automatically.
"""


class POSError(Exception):
    """Base class for every error the API reports as a structured response."""

    code = "POSError"
    status_code = 500

    def __init__(self, message="An internal error occurred", payload=None):
        super().__init__(message)
        self.message = message
        self.payload = payload

    def to_dict(self):
        body = dict(self.payload or ())
        body["success"] = False
        body["error"] = self.code
        body["message"] = self.message
        return body


class NotFoundError(POSError):
    code = "NotFound"
    status_code = 404

    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, payload)


class InvalidRequestError(POSError):
    code = "InvalidRequest"
    status_code = 400


class InsufficientStockError(POSError):
    """Requested quantity exceeds what is on hand for a product."""

    code = "InsufficientStock"
    status_code = 400

    def __init__(self, product_id, product_name, requested, available):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        message = (
            f"Insufficient stock for {product_name}: "
            f"requested {requested}, available {available}"
        )
        super().__init__(
            message,
            payload={
                "product_id": product_id,
                "requested": requested,
                "available": available,
            },
        )


class ConflictError(POSError):
    code = "Conflict"
    status_code = 409


class StorageError(POSError):
    code = "StorageError"
    status_code = 500

    def __init__(self, message="Storage failure", payload=None):
        super().__init__(message, payload)


class StockGuardError(StorageError):
    """The storage-level guard refused a decrement that would go negative."""

    def __init__(self, product_id, amount):
        self.product_id = product_id
        self.amount = amount
        super().__init__(
            f"Stock decrement of {amount} rejected for product {product_id}",
        )
