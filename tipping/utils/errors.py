"""
Application error type and normalization helpers
"""


class AppError(Exception):
    """Recoverable domain error carrying a machine-readable code and HTTP status"""

    def __init__(self, message, code="UNKNOWN_ERROR", status_code=400):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    def __repr__(self):
        return f"<AppError {self.code} ({self.status_code}): {self.message}>"

    def to_dict(self):
        return {"success": False, "error": self.message, "code": self.code}


class NotFoundError(AppError):
    def __init__(self, message="Resource not found"):
        super().__init__(message, "NOT_FOUND", 404)


class BadRequestError(AppError):
    def __init__(self, message="Bad request"):
        super().__init__(message, "BAD_REQUEST", 400)


def form_errors(form):
    """Flatten WTForms errors into {field: [messages]}, form-level errors under '_form'"""
    field_errors = {}
    for name, messages in form.errors.items():
        # Form-level errors sit under None (WTForms < 3.2) or ""
        field_errors.setdefault(name or "_form", []).extend(messages)
    return field_errors


def validation_failure(form):
    """Structured failure for a payload that did not pass its schema"""
    field_errors = form_errors(form)
    first_message = next(
        (messages[0] for messages in field_errors.values() if messages),
        "Invalid input",
    )
    return {
        "success": False,
        "error": first_message,
        "code": "VALIDATION_ERROR",
        "field_errors": field_errors,
    }


def handle_action_error(error, default_message="An unexpected error occurred"):
    """
    Normalize an error raised by a service call into a response payload

    Args:
        error: The caught exception
        default_message: Message used when the error carries none

    Returns:
        dict: {"message", "code"}
    """
    if isinstance(error, AppError):
        return {"message": error.message, "code": error.code}

    return {"message": str(error) or default_message, "code": "UNKNOWN_ERROR"}
