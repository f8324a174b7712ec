"""Business errors raised by services.

Every error here is raised *before* the first write of its transaction, so a
failed operation leaves no partial mutation behind. The API boundary
(core.api.api_view) turns them into JSON responses using `status_code`.

Input validation uses django.core.exceptions.ValidationError, the same as
forms do.
"""


class BusinessError(Exception):
    status_code = 400
    default_message = "Operation not allowed."

    def __init__(self, message=None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class NotFound(BusinessError):
    status_code = 404
    default_message = "Object not found."


class IllegalStateTransition(BusinessError):
    default_message = "State transition not allowed."


class InsufficientStock(BusinessError):
    default_message = "Insufficient stock."


class InsufficientSourceVolume(BusinessError):
    default_message = "Insufficient volume in source tank."


class DestinationCapacityExceeded(BusinessError):
    default_message = "Tank capacity exceeded."


class MaterialMismatch(BusinessError):
    default_message = "Tanks must hold the same material."


class TankStockExceedsMaterialStock(BusinessError):
    default_message = "Total stock in tanks may not exceed the material stock."
