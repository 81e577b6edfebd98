from .error_handler import error_handler_middleware, setup_exception_handlers

__all__ = ["error_handler_middleware", "setup_exception_handlers"]
