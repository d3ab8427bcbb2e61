# backend/services/errors.py

# Business errors raised by the service layer and mapped to HTTP codes in main.py
class ServiceError(Exception):
    status_code = 400

    def __init__(self, message: str = "Request failed"):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class ValidationError(ServiceError):
    status_code = 400

    def __init__(self, message: str = "Validation failed"):
        super().__init__(message)


class ForbiddenError(ServiceError):
    status_code = 403

    def __init__(self, message: str = "Access forbidden"):
        super().__init__(message)


class ConflictError(ServiceError):
    status_code = 409

    def __init__(self, message: str = "Resource was modified concurrently, please retry"):
        super().__init__(message)
