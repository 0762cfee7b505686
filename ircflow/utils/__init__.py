from .retry import RetryableException, RetryExhaustedError, retry_async

__all__ = ["RetryableException", "RetryExhaustedError", "retry_async"]
