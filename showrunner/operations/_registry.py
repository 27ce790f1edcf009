import importlib
import pkgutil
from importlib import resources
from typing import Dict, Iterable

from showrunner import operations
from showrunner.access import manager
from showrunner.operations._base import Operation

_registry: Dict[str, Operation] = {}


def register(name: str | None = None, access=manager, confirm=None, actor=None):
    """Register a reducer as a named operation.

    Args:
        name: Registry name; defaults to the reducer's function name.
        access: Access policy checked before the reducer runs.
        confirm: Confirmation prompt (or prompt builder) for destructive operations.
        actor: Reducer parameter the service fills with the acting user's id.

    Returns:
        callable: Decorator returning the reducer unchanged.
    """

    def decorator(reducer):
        operation_name = name or reducer.__name__
        _registry[operation_name] = Operation(
            operation_name, reducer, access=access, confirm=confirm, actor=actor
        )
        return reducer

    return decorator


def _iter_operation_module_names() -> Iterable[str]:
    """Yield operation module names within the operations package.

    Returns:
        Iterable[str]: Module names without package prefixes.
    """
    module_names: set[str] = set()
    pkg = operations

    # use importlib.resources first because pkgutil can miss modules in frozen apps
    try:
        for entry in resources.files(pkg).iterdir():
            if entry.name.startswith("_"):
                continue
            if entry.is_file() and entry.name.endswith(".py"):
                module_names.add(entry.name[:-3])
    except (OSError, TypeError):
        module_names = set()

    if not module_names:
        for _, module_name, _ in pkgutil.iter_modules(pkg.__path__):
            module_names.add(module_name)

    return sorted(module_names)


def _discover_operations() -> None:
    """Import operation modules so that @register runs."""
    pkg = operations
    for module_name in _iter_operation_module_names():
        if module_name.startswith("_"):
            continue
        importlib.import_module(f"{pkg.__name__}.{module_name}")


def get_operations() -> Dict[str, Operation]:
    _discover_operations()
    return dict(_registry)


def get_operation(name: str) -> Operation:
    _discover_operations()
    try:
        return _registry[name]
    except KeyError:
        raise ValueError(f"No operation named {name!r}")
