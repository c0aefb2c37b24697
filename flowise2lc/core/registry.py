"""Registry of node converters."""

import dataclasses
import logging
from types import MappingProxyType
from typing import Dict, List, Any, Iterable, Optional

from flowise2lc.codegen.errors import ConverterRegistrationError
from flowise2lc.codegen.ir import IRNode
from flowise2lc.sdk.plugin_base import Converter
from flowise2lc.sdk.plugin_loader import discover_converters, load_module_converters

logger = logging.getLogger(__name__)


class ConverterRegistry:
    """
    Read-only mapping from node type to converter.

    Built once by RegistryBuilder and shared by every conversion run.
    """

    def __init__(self, converters: Dict[str, Converter], aliases: Optional[Dict[str, str]] = None):
        self._converters = MappingProxyType(dict(converters))
        self._aliases = MappingProxyType(dict(aliases or {}))

    def get_converter(self, node_type: str) -> Optional[Converter]:
        return self._converters.get(node_type)

    def has_converter(self, node_type: str) -> bool:
        return node_type in self._converters

    def converter_for(self, node: IRNode) -> Optional[Converter]:
        """The converter for a node, if one is registered and accepts it."""
        converter = self._converters.get(node.type)
        if converter is None:
            return None
        # An alias is judged as the type it stands for
        target = self._aliases.get(node.type)
        candidate = dataclasses.replace(node, type=target) if target else node
        return converter if converter.can_convert(candidate) else None

    def registered_types(self) -> List[str]:
        return sorted(self._converters)

    def converters_by_category(self) -> Dict[str, List[str]]:
        categories: Dict[str, List[str]] = {}
        for node_type, converter in sorted(self._converters.items()):
            categories.setdefault(converter.category, []).append(node_type)
        return categories

    def statistics(self) -> Dict[str, Any]:
        unique = {id(c) for c in self._converters.values()}
        aliases = sum(1 for t, c in self._converters.items() if t != c.primary_type)
        return {
            "total_types": len(self._converters),
            "converters": len(unique),
            "aliases": aliases,
            "categories": {k: len(v) for k, v in self.converters_by_category().items()},
        }

    def __contains__(self, node_type: str) -> bool:
        return node_type in self._converters

    def __len__(self):
        return len(self._converters)


class RegistryBuilder:
    """Collects converters and produces an immutable ConverterRegistry."""

    def __init__(self):
        self._converters: Dict[str, Converter] = {}
        self._aliases: Dict[str, str] = {}

    def register(self, converter: Converter) -> "RegistryBuilder":
        """
        Bind every type the converter declares.

        Raises:
            ConverterRegistrationError: if a type is already bound or the
                converter declares none
        """
        if not converter.node_types:
            raise ConverterRegistrationError(f"{type(converter).__name__} declares no node types")
        for node_type in converter.node_types:
            existing = self._converters.get(node_type)
            if existing is not None:
                raise ConverterRegistrationError(
                    f"Node type '{node_type}' is already handled by {type(existing).__name__}; "
                    f"cannot register {type(converter).__name__}")
        for node_type in converter.node_types:
            self._converters[node_type] = converter
        return self

    def register_all(self, converters: Iterable[Converter]) -> "RegistryBuilder":
        for converter in converters:
            self.register(converter)
        return self

    def register_alias(self, alias: str, target_type: str) -> "RegistryBuilder":
        """Bind `alias` to the converter already registered for `target_type`."""
        if target_type not in self._converters:
            raise ConverterRegistrationError(f"Cannot alias '{alias}': '{target_type}' is not registered")
        if alias in self._converters:
            raise ConverterRegistrationError(f"Node type '{alias}' is already registered")
        self._converters[alias] = self._converters[target_type]
        self._aliases[alias] = self._aliases.get(target_type, target_type)
        return self

    def build(self) -> ConverterRegistry:
        return ConverterRegistry(self._converters, self._aliases)


def build_default_registry(extra_modules: Iterable[str] = ()) -> ConverterRegistry:
    """Registry with the bundled converters plus converters from `extra_modules`."""
    builder = RegistryBuilder()
    builder.register_all(discover_converters())
    builder.register_all(load_module_converters(extra_modules))
    registry = builder.build()
    logger.info("Registered %d node type(s)", len(registry))
    return registry
