"""
printf-style error formatting.

`errorf(template, *args)` renders `template` with Python's `%` conversions and
two extra verbs:

    %v  the argument's str()
    %w  the argument's str(); the argument (an exception) becomes the cause

One `%w` yields a `WrapError` (single-step `unwrap()`), several yield a
`JoinedWrapError` (`unwrap_all()` only), none yields a `MessageError`.

Bad input never raises; it is rendered inline:

    errorf("%d", "x")        -> "%!d(str=x)"
    errorf("%s")             -> "%!s(MISSING)"
    errorf("%w", "x")        -> "%!w(str=x)"
    errorf("a", 1)           -> "a%!(EXTRA int=1)"
"""

from __future__ import annotations

import re
from typing import Any, List, Optional, Tuple

_VERB = re.compile(r"%([-#0 +]*\d*(?:\.\d*)?)([a-zA-Z%])")

# verbs handed to Python's % operator as-is
_PY_VERBS = frozenset("diouxXeEfFgGcrsa")


class MessageError(Exception):
    """Leaf error carrying only a message."""

    def __init__(self, msg: str) -> None:
        super().__init__(msg)
        self.msg = msg

    def __str__(self) -> str:
        return self.msg


class WrapError(Exception):
    """Formatted error wrapping exactly one cause."""

    def __init__(self, msg: str, err: BaseException) -> None:
        super().__init__(msg)
        self.msg = msg
        self.err = err
        self.__cause__ = err

    def __str__(self) -> str:
        return self.msg

    def unwrap(self) -> Optional[BaseException]:
        return self.err

    def __reduce__(self) -> Any:
        return (type(self), (self.msg, self.err))


class JoinedWrapError(Exception):
    """Formatted error wrapping several causes."""

    def __init__(self, msg: str, errs: Tuple[BaseException, ...]) -> None:
        super().__init__(msg)
        self.msg = msg
        self.errs = errs
        self.__cause__ = errs[0]

    def __str__(self) -> str:
        return self.msg

    def unwrap_all(self) -> Tuple[BaseException, ...]:
        return self.errs

    def __reduce__(self) -> Any:
        return (type(self), (self.msg, self.errs))


def new(msg: str) -> MessageError:
    return MessageError(msg)


def _bad(verb: str, arg: Any) -> str:
    return f"%!{verb}({type(arg).__name__}={arg})"


def _convert(flags: str, verb: str, arg: Any) -> str:
    if verb in ("v", "w"):
        return ("%" + flags + "s") % (str(arg),)
    if verb == "q":
        return ("%" + flags + "r") % (arg,)
    if verb not in _PY_VERBS:
        return _bad(verb, arg)
    try:
        return ("%" + flags + verb) % (arg,)
    except (TypeError, ValueError, OverflowError):
        return _bad(verb, arg)


def sprintf(template: str, *args: Any) -> Tuple[str, List[BaseException]]:
    """
    Render `template` and return the text plus the exceptions consumed by
    `%w` verbs, in order of appearance.
    """
    out: List[str] = []
    wrapped: List[BaseException] = []
    pos = 0
    argi = 0
    for m in _VERB.finditer(template):
        out.append(template[pos : m.start()])
        pos = m.end()
        flags, verb = m.group(1), m.group(2)
        if verb == "%":
            out.append("%")
            continue
        if argi >= len(args):
            out.append(f"%!{verb}(MISSING)")
            continue
        arg = args[argi]
        argi += 1
        if verb == "w":
            if not isinstance(arg, BaseException):
                out.append(_bad("w", arg))
                continue
            wrapped.append(arg)
        out.append(_convert(flags, verb, arg))
    out.append(template[pos:])
    if argi < len(args):
        extra = ", ".join(f"{type(a).__name__}={a}" for a in args[argi:])
        out.append(f"%!(EXTRA {extra})")
    return "".join(out), wrapped


def errorf(template: str, *args: Any) -> Exception:
    msg, wrapped = sprintf(template, *args)
    if not wrapped:
        return MessageError(msg)
    if len(wrapped) == 1:
        return WrapError(msg, wrapped[0])
    return JoinedWrapError(msg, tuple(wrapped))


__all__ = [
    "MessageError",
    "WrapError",
    "JoinedWrapError",
    "new",
    "sprintf",
    "errorf",
]
