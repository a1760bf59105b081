"""treewright registry -- name -> handler lookup for tasks and jobs."""

from .jobs import JobNotFoundError, JobRunner
from .registry import (
    FallbackRegistry,
    HandlerAlreadyRegisteredError,
    HandlerDescription,
    HandlerExportNotFoundError,
    InvalidHandlerNameError,
    JobArgumentValidationError,
    JobHandler,
    ModuleRegistry,
    Registry,
    Schema,
    SimpleRegistry,
)

__all__ = [
    "Registry",
    "SimpleRegistry",
    "ModuleRegistry",
    "FallbackRegistry",
    "HandlerDescription",
    "JobHandler",
    "JobRunner",
    "Schema",
    # Errors
    "InvalidHandlerNameError",
    "HandlerExportNotFoundError",
    "HandlerAlreadyRegisteredError",
    "JobArgumentValidationError",
    "JobNotFoundError",
]
