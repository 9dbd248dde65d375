"""
Context fragments - cached, ordered pieces of prompt content.
"""

from .base import ContextFragment, FragmentSnapshot, Section, parse_ttl
from .file import FileFragment
from .static import StaticFragment, SystemPrefix, SystemSuffix
from .turn_input import TurnInputFragment

__all__ = [
    "ContextFragment",
    "FragmentSnapshot",
    "Section",
    "parse_ttl",
    "FileFragment",
    "StaticFragment",
    "SystemPrefix",
    "SystemSuffix",
    "TurnInputFragment",
]
