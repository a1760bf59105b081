"""Run a named job through a registry."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Optional

from .registry import Registry

logger = logging.getLogger("treewright.registry")


class JobNotFoundError(LookupError):
    """No registry could resolve the job name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Job {name!r} was not found.")


class JobRunner:
    """Resolves a handler by name, validates its argument, and runs it."""

    def __init__(self, registry: Registry) -> None:
        self.registry = registry

    async def run(self, name: str, argument: Any = None, **kwargs: Any) -> Any:
        """Run the handler registered under *name*.

        Args:
            name: Handler name understood by the registry.
            argument: Value passed as the handler's first positional argument,
                validated against its declared ``argument`` schema.
            **kwargs: Extra keyword arguments forwarded to the handler. An
                ``input`` keyword is validated against the ``input`` schema.

        Returns:
            The handler's result, validated against its ``output`` schema.

        Raises:
            JobNotFoundError: If the registry returns no handler.
            JobArgumentValidationError: If the argument, input or output is rejected.
        """
        handler = self.registry.get(name)
        if handler is None:
            raise JobNotFoundError(name)

        value = handler.validate_argument(argument)
        if "input" in kwargs:
            kwargs["input"] = handler.validate_input(kwargs["input"])
        logger.debug("Running job %s", name)
        result = handler(value, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return handler.validate_output(result)

    def describe(self, name: str) -> Optional[dict[str, Any]]:
        """Return the declared JSON schemas of *name*, or ``None`` if unknown."""
        handler = self.registry.get(name)
        if handler is None:
            return None
        return {
            field: handler.description.json_schema(field)
            for field in ("argument", "input", "output")
        }
