"""
Custom exceptions for service layer
"""

import functools


class ServiceError(Exception):
    """Base exception for service layer errors"""
    pass

class ValidationError(ServiceError):
    """Raised when input validation fails"""
    pass

class UnsupportedFormatError(ValidationError):
    """Raised when a file matches neither GEDCOM nor GeneWeb"""
    pass

class ParseError(ServiceError):
    """Raised when a file cannot be read at all (e.g. empty upload)"""
    pass


def handle_service_exceptions(logger=None):
    """Decorator to handle common service exceptions and convert them to service-specific exceptions"""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except ServiceError:
                # Re-raise our own service errors
                raise
            except UnicodeDecodeError as e:
                if logger:
                    logger.error(f"Decoding error in {func.__name__}: {e}")
                raise ValidationError(f"Unreadable file encoding: {e}") from e
            except ValueError as e:
                if logger:
                    logger.error(f"Validation error in {func.__name__}: {e}")
                raise ValidationError(f"Invalid input: {e}") from e
            except KeyError as e:
                if logger:
                    logger.error(f"Missing required data in {func.__name__}: {e}")
                raise ValidationError(f"Missing required field: {e}") from e
            except Exception as e:
                if logger:
                    logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
                raise ServiceError(f"Unexpected service error: {e}") from e
        return wrapper
    return decorator
