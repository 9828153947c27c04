"""Command classification and dispatch policy."""

from .classifier import Classification, CommandKind, classify
from .policy import DispatchPolicy

__all__ = [
    'Classification',
    'CommandKind',
    'classify',
    'DispatchPolicy'
]
