from __future__ import annotations

from typing import Iterator, Optional, Protocol, Tuple, Type, TypeVar, runtime_checkable

E = TypeVar("E", bound=BaseException)


@runtime_checkable
class Unwrapper(Protocol):
    """
    Single-step unwrap capability.
    Error types that decorate another error implement it to take part in
    chain walking. Returning None means "nothing beneath".
    """

    def unwrap(self) -> Optional[BaseException]: ...


@runtime_checkable
class MultiUnwrapper(Protocol):
    """
    Errors wrapping several causes at once. These are walked by `walk` but
    have no single-step unwrap.
    """

    def unwrap_all(self) -> Tuple[BaseException, ...]: ...


def unwrap(err: Optional[BaseException]) -> Optional[BaseException]:
    """
    Unwrap one level.

    - `Unwrapper` -> err.unwrap()
    - `MultiUnwrapper` -> None (several causes, no single next link)
    - anything else -> err.__cause__ (explicit `raise ... from ...` chaining)
    """
    if err is None:
        return None
    if isinstance(err, Unwrapper):
        return err.unwrap()
    if isinstance(err, MultiUnwrapper):
        return None
    return err.__cause__


def causes(err: BaseException) -> Tuple[BaseException, ...]:
    """All errors directly beneath `err`, in order."""
    if isinstance(err, Unwrapper):
        inner = err.unwrap()
        return () if inner is None else (inner,)
    if isinstance(err, MultiUnwrapper):
        return tuple(e for e in err.unwrap_all() if e is not None)
    if isinstance(err, BaseExceptionGroup):
        return tuple(err.exceptions)
    if err.__cause__ is not None:
        return (err.__cause__,)
    return ()


def walk(err: Optional[BaseException]) -> Iterator[BaseException]:
    """
    Depth-first, pre-order traversal of the error tree rooted at `err`.
    Each error is yielded at most once, so cyclic `__cause__` links terminate.
    """
    if err is None:
        return
    seen: set[int] = set()
    stack = [err]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur
        stack.extend(reversed(causes(cur)))


def is_(err: Optional[BaseException], target: BaseException) -> bool:
    """True if any error in the chain of `err` is (or equals) `target`."""
    return any(e is target or e == target for e in walk(err))


def as_(err: Optional[BaseException], kind: Type[E]) -> Optional[E]:
    """First error in the chain of `err` that is an instance of `kind`."""
    for e in walk(err):
        if isinstance(e, kind):
            return e
    return None


__all__ = [
    "Unwrapper",
    "MultiUnwrapper",
    "unwrap",
    "causes",
    "walk",
    "is_",
    "as_",
]
