# sdk/plugin_loader.py

"""Discovers converter classes in Python modules."""

import importlib
import inspect
import logging
import pkgutil
from typing import List, Iterable

from flowise2lc.codegen.errors import ConverterRegistrationError
from flowise2lc.sdk.plugin_base import Converter

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE = "flowise2lc.converters"


class PluginLoadError(ConverterRegistrationError):
    """Exception raised when a converter module cannot be loaded."""
    pass


def converters_from_module(module) -> List[Converter]:
    """
    Instantiate the converters a module exposes.

    A module lists its converter classes in `CONVERTERS`; modules without
    that attribute contribute nothing.
    """
    classes = getattr(module, "CONVERTERS", None)
    if classes is None:
        return []
    converters = []
    for cls in classes:
        if not (inspect.isclass(cls) and issubclass(cls, Converter)):
            raise PluginLoadError(f"{module.__name__}.CONVERTERS contains a non-converter: {cls!r}")
        converters.append(cls())
    return converters


def load_module_converters(module_names: Iterable[str]) -> List[Converter]:
    """Import each named module and collect its converters."""
    converters: List[Converter] = []
    for name in module_names:
        try:
            module = importlib.import_module(name)
        except ImportError as e:
            raise PluginLoadError(f"Cannot import converter module '{name}': {e}") from e
        found = converters_from_module(module)
        logger.debug("Loaded %d converter(s) from %s", len(found), name)
        converters.extend(found)
    return converters


def discover_converters(package: str = DEFAULT_PACKAGE) -> List[Converter]:
    """Collect converters from every module of a package, in module name order."""
    pkg = importlib.import_module(package)
    names = sorted(
        f"{package}.{info.name}"
        for info in pkgutil.iter_modules(pkg.__path__)
        if not info.name.startswith("_")
    )
    return load_module_converters(names)
