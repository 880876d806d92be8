"""Core interfaces (Protocol classes) for estatecache."""

from estatecache.core.interfaces.invalidator import IInvalidator
from estatecache.core.interfaces.property_source import IPropertySource, PropertyRecord

__all__ = [
    "IInvalidator",
    "IPropertySource",
    "PropertyRecord",
]
