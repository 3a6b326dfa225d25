"""
Typed exceptions for PackControl.

Every error carries a machine-readable ``code`` and the HTTP status the API
answers with, so callers catch by type and clients branch on ``code``:

    PackControlError
    +-- NotFoundError
    |   +-- ProductNotFoundError
    |   +-- CategoryNotFoundError
    |   +-- SupplierNotFoundError
    |   +-- UserNotFoundError
    +-- MovementValidationError
    +-- UnauthorizedError
    +-- ConflictError
    +-- ImmutableRecordError
    +-- StorageError
"""


class PackControlError(Exception):
    """Base class for all application errors."""

    code: str = "PACKCONTROL_ERROR"
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(PackControlError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, resource_id):
        super().__init__(f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id):
        super().__init__("Product", product_id)
        self.product_id = product_id


class CategoryNotFoundError(NotFoundError):
    def __init__(self, category_id):
        super().__init__("Category", category_id)


class SupplierNotFoundError(NotFoundError):
    def __init__(self, supplier_id):
        super().__init__("Supplier", supplier_id)


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id):
        super().__init__("User", user_id)


class MovementValidationError(PackControlError):
    """Quantity outside the range allowed for the movement kind."""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str, kind=None, quantity=None):
        super().__init__(message)
        self.kind = kind
        self.quantity = quantity


class UnauthorizedError(PackControlError):
    """The acting user's role does not allow the operation."""

    code = "UNAUTHORIZED"
    status_code = 403

    def __init__(self, message: str = "Not authorized", role=None):
        super().__init__(message)
        self.role = role


class ConflictError(PackControlError):
    code = "CONFLICT"
    status_code = 409


class ImmutableRecordError(PackControlError):
    """Raised when something tries to change or remove a ledger row."""

    code = "IMMUTABLE_RECORD"
    status_code = 409

    def __init__(self, entity: str, entity_id, operation: str):
        super().__init__(f"{entity} {entity_id} is immutable ({operation} rejected)")
        self.entity = entity
        self.entity_id = entity_id
        self.operation = operation


class StorageError(PackControlError):
    """The write transaction failed in the database and was rolled back."""

    code = "STORAGE_ERROR"
    status_code = 503
