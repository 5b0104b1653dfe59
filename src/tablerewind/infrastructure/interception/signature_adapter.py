"""Signature adapter.

Builds the wrapper installed over a connection type's write entry point.
The entry point's declared signature is inspected once, at installation
time, and one of two forwarding wrappers is selected:

- positional: every parameter after the receiver is positional-only or
  ``*args``. The statement can only arrive in a positional slot.
- keyword: anything that can be passed by name. The statement is looked up
  in its positional slot first, then by keyword.

Both wrappers forward every argument untouched and return or raise
exactly what the original does.
"""

import functools
import inspect
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from tablerewind.infrastructure.interception.interceptor import InsertInterceptor

WRAPPED_MARKER = "__tablerewind_original__"
INTERCEPTOR_MARKER = "__tablerewind_interceptor__"

_POSITIONAL_KINDS = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.VAR_POSITIONAL)
_SLOT_KINDS = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


class CallConvention(str, Enum):
    """How an entry point accepts its arguments."""

    POSITIONAL = "positional"
    KEYWORD = "keyword"


@dataclass(frozen=True)
class EntryPoint:
    """A write-capable method to intercept.

    Attributes:
        name: Method name on the connection type.
        statement_param: Name of the parameter carrying the SQL text.
            When None (or not declared) the first parameter after the
            receiver is used.
    """

    name: str
    statement_param: Optional[str] = None


@dataclass(frozen=True)
class AdaptedSignature:
    """Result of inspecting an entry point once.

    Attributes:
        convention: Selected forwarding convention.
        statement_index: Index of the statement in the positional arguments
            after the receiver (sys.maxsize when keyword-only).
        statement_name: Keyword under which the statement may be passed.
    """

    convention: CallConvention
    statement_index: int = 0
    statement_name: Optional[str] = None


def is_wrapped(func: Any) -> bool:
    """Check whether func is a wrapper installed by tablerewind."""
    return getattr(func, WRAPPED_MARKER, None) is not None


def wrapper_interceptor(func: Any) -> Optional[InsertInterceptor]:
    """The interceptor a tablerewind wrapper records through (None for other objects)."""
    if not is_wrapped(func):
        return None
    return getattr(func, INTERCEPTOR_MARKER, None)


class SignatureAdapter:
    """Selects and builds interception wrappers for entry points."""

    def __init__(self, interceptor: InsertInterceptor) -> None:
        self.interceptor = interceptor

    def inspect_signature(self, func: Callable, entry: EntryPoint) -> AdaptedSignature:
        """Inspect an entry point's declared parameters.

        Signatures that cannot be inspected get the keyword convention,
        which forwards everything.
        """
        try:
            params = list(inspect.signature(func).parameters.values())
        except (TypeError, ValueError):
            return AdaptedSignature(CallConvention.KEYWORD, 0, entry.statement_param)

        # Drop the receiver
        if params and params[0].kind in _SLOT_KINDS:
            params = params[1:]

        if all(p.kind in _POSITIONAL_KINDS for p in params):
            convention = CallConvention.POSITIONAL
        else:
            convention = CallConvention.KEYWORD

        slots = [p for p in params if p.kind in _SLOT_KINDS]
        statement = None
        if entry.statement_param is not None:
            statement = next((p for p in params if p.name == entry.statement_param), None)
        if statement is None or statement.kind not in (*_SLOT_KINDS, inspect.Parameter.KEYWORD_ONLY):
            statement = slots[0] if slots else None

        if statement is None:
            return AdaptedSignature(convention, 0, None)
        if statement.kind is inspect.Parameter.KEYWORD_ONLY:
            return AdaptedSignature(convention, sys.maxsize, statement.name)
        name = statement.name if statement.kind is inspect.Parameter.POSITIONAL_OR_KEYWORD else None
        return AdaptedSignature(convention, slots.index(statement), name)

    def adapt(self, func: Callable, entry: EntryPoint) -> Callable:
        """Build the interception wrapper for func.

        Returns:
            A function with func's metadata (functools.wraps) that records
            insertions and then delegates to func.
        """
        signature = self.inspect_signature(func, entry)
        if signature.convention is CallConvention.POSITIONAL:
            wrapper = self._positional_wrapper(func, signature)
        else:
            wrapper = self._keyword_wrapper(func, signature)

        setattr(wrapper, WRAPPED_MARKER, func)
        setattr(wrapper, INTERCEPTOR_MARKER, self.interceptor)
        wrapper.__tablerewind_convention__ = signature.convention
        return wrapper

    def _positional_wrapper(self, original: Callable, signature: AdaptedSignature) -> Callable:
        interceptor = self.interceptor
        index = signature.statement_index

        @functools.wraps(original)
        def intercept(connection, *args, **kwargs):
            if kwargs:
                # Invalid for a positional-only entry point; let it raise its own error.
                return original(connection, *args, **kwargs)
            token = interceptor.enter(connection, args[index] if index < len(args) else None)
            try:
                return original(connection, *args)
            finally:
                interceptor.exit(token)

        return intercept

    def _keyword_wrapper(self, original: Callable, signature: AdaptedSignature) -> Callable:
        interceptor = self.interceptor
        index = signature.statement_index
        name = signature.statement_name

        @functools.wraps(original)
        def intercept(connection, *args, **kwargs):
            if index < len(args):
                statement = args[index]
            elif name is not None:
                statement = kwargs.get(name)
            else:
                statement = None
            token = interceptor.enter(connection, statement)
            try:
                return original(connection, *args, **kwargs)
            finally:
                interceptor.exit(token)

        return intercept
