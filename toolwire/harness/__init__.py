"""Harness: the runtime plumbing that keeps tool execution resilient."""
from toolwire.harness.retry import RetryConfig, delay, retry_operation, with_retries

__all__ = ["RetryConfig", "delay", "retry_operation", "with_retries"]
