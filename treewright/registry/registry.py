"""Name -> handler registries.

Two resolution strategies share one ``get(name)`` contract:

* :class:`SimpleRegistry` -- handlers registered in memory under an exact name.
* :class:`ModuleRegistry` -- the name encodes an importable module plus an
  optional exported symbol (``package.module:symbol``; ``#`` is accepted as
  the separator too).  The module loader is injected, so tests and embedders
  can resolve names without touching ``sys.modules``.

``get`` returns a :class:`JobHandler` or ``None`` (not found), never both.
Malformed names and modules that exist but lack the requested symbol raise,
so callers can tell "nothing registered here" from "this name is broken".
"""

from __future__ import annotations

import importlib
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Optional, Protocol, Union

from pydantic import BaseModel, ValidationError

# A schema is a pydantic model class, ``True`` ("accept anything", declared
# explicitly), ``False`` ("accept nothing") or ``None`` (nothing declared).
Schema = Union[type[BaseModel], bool, None]

_NAME_RE = re.compile(
    r"^(?P<module>[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*)"
    r"(?:[:#](?P<symbol>[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*))?$"
)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class InvalidHandlerNameError(ValueError):
    """The name cannot be parsed into a module path and symbol."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Invalid handler name {name!r}; expected 'package.module[:symbol]'.")


class HandlerExportNotFoundError(LookupError):
    """The module resolved, but it does not export the requested symbol."""

    def __init__(self, name: str, module: str, symbol: str) -> None:
        self.name = name
        self.module = module
        self.symbol = symbol
        super().__init__(f"Module {module!r} has no export {symbol!r} (resolving {name!r}).")


class HandlerAlreadyRegisteredError(ValueError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"A handler named {name!r} is already registered.")


class JobArgumentValidationError(ValueError):
    """A value did not satisfy the handler's declared schema."""

    def __init__(self, name: str, field: str, detail: str) -> None:
        self.name = name
        self.field = field
        super().__init__(f"Invalid {field} for handler {name!r}: {detail}")


# ---------------------------------------------------------------------------
# Descriptions & handlers
# ---------------------------------------------------------------------------


def _is_schema(value: Any) -> bool:
    if isinstance(value, bool):
        return True
    return isinstance(value, type) and issubclass(value, BaseModel)


def _pick_schema(*candidates: Any) -> Schema:
    """Return the first candidate that is a usable schema, else ``None``."""
    for candidate in candidates:
        if _is_schema(candidate):
            return candidate
    return None


@dataclass(frozen=True)
class HandlerDescription:
    """Declared argument/input/output schemas of a handler."""

    name: str
    argument: Schema = None
    input: Schema = None
    output: Schema = None

    def json_schema(self, field: str) -> Union[dict[str, Any], bool, None]:
        """Return the JSON schema for *field*, ``True``/``False``, or ``None`` if undeclared."""
        schema = getattr(self, field)
        if isinstance(schema, type):
            return schema.model_json_schema()
        return schema


class JobHandler:
    """A resolved handler: the callable plus its description."""

    def __init__(self, func: Callable[..., Any], description: HandlerDescription) -> None:
        self.func = func
        self.description = description

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.func(*args, **kwargs)

    def __repr__(self) -> str:
        return f"<JobHandler {self.description.name!r}>"

    def validate_argument(self, value: Any) -> Any:
        return _validate(self.description, "argument", value)

    def validate_input(self, value: Any) -> Any:
        return _validate(self.description, "input", value)

    def validate_output(self, value: Any) -> Any:
        return _validate(self.description, "output", value)


def _validate(description: HandlerDescription, field: str, value: Any) -> Any:
    schema = getattr(description, field)
    if schema is None or schema is True:
        return value
    if schema is False:
        raise JobArgumentValidationError(description.name, field, "the schema accepts no value")
    if isinstance(value, schema):
        return value
    try:
        return schema.model_validate(value)
    except ValidationError as exc:
        raise JobArgumentValidationError(description.name, field, str(exc)) from exc


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------


class Registry(Protocol):
    def get(self, name: str) -> Optional[JobHandler]: ...


class SimpleRegistry:
    """In-memory registry with exact-name lookup."""

    def __init__(self) -> None:
        self._handlers: dict[str, JobHandler] = {}

    def register(
        self,
        name: str,
        handler: Callable[..., Any],
        *,
        argument: Schema = None,
        input: Schema = None,
        output: Schema = None,
    ) -> JobHandler:
        if name in self._handlers:
            raise HandlerAlreadyRegisteredError(name)
        description = HandlerDescription(name, argument=argument, input=input, output=output)
        job = JobHandler(handler, description)
        self._handlers[name] = job
        return job

    def get(self, name: str) -> Optional[JobHandler]:
        return self._handlers.get(name)

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers


class ModuleRegistry:
    """Resolves ``package.module[:symbol]`` names through a module loader.

    The symbol defaults to ``default``.  Schemas are read from the handler's
    own ``argument``/``input``/``output`` attributes, falling back to
    module-level attributes of the same names.
    """

    def __init__(self, loader: Callable[[str], ModuleType] = importlib.import_module) -> None:
        self._loader = loader

    def _resolve(self, module_name: str) -> Optional[ModuleType]:
        try:
            return self._loader(module_name)
        except ModuleNotFoundError as exc:
            missing = exc.name or ""
            # Only "this module does not exist" means not-found; a broken
            # import inside an existing module must surface.
            if missing and (module_name == missing or module_name.startswith(missing + ".")):
                return None
            raise

    def get(self, name: str) -> Optional[JobHandler]:
        match = _NAME_RE.match(name)
        if match is None:
            raise InvalidHandlerNameError(name)
        module_name = match.group("module")
        symbol = match.group("symbol") or "default"

        module = self._resolve(module_name)
        if module is None:
            return None

        target: Any = module
        for part in symbol.split("."):
            target = getattr(target, part, None)
            if target is None:
                raise HandlerExportNotFoundError(name, module_name, symbol)

        if isinstance(target, JobHandler):
            return target

        description = HandlerDescription(
            name,
            argument=_pick_schema(getattr(target, "argument", None), getattr(module, "argument", None)),
            input=_pick_schema(getattr(target, "input", None), getattr(module, "input", None)),
            output=_pick_schema(getattr(target, "output", None), getattr(module, "output", None)),
        )
        return JobHandler(target, description)


class FallbackRegistry:
    """Asks each registry in turn and returns the first handler found."""

    def __init__(self, registries: Iterable[Registry]) -> None:
        self._registries = list(registries)

    def add(self, registry: Registry) -> None:
        self._registries.append(registry)

    def get(self, name: str) -> Optional[JobHandler]:
        for registry in self._registries:
            handler = registry.get(name)
            if handler is not None:
                return handler
        return None
