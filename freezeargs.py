"""Utility to make functions taking dicts and lists compatible with cache."""

import functools

from frozendict import frozendict


def freeze(value):
    """Recursively convert dicts, lists and sets into hashable equivalents.

    Precondition:
        value is any object; dict keys are hashable

    Postcondition:
        dicts become frozendicts, lists and tuples become tuples, sets
        become frozensets, each with frozen contents
        any other value is returned unchanged

    Args:
        value: object to freeze

    Returns:
        hashable equivalent of value where possible
    """
    if isinstance(value, dict):
        return frozendict({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(freeze(item) for item in value)
    return value


def freezeargs(func):
    """Decorator to freeze mutable container arguments before calling func.

    Precondition:
        func is a callable

    Postcondition:
        returns a wrapped version of func
        wrapped version freezes every positional and keyword argument
        useful for making functions compatible with cache decorators

    Args:
        func: function to wrap

    Returns:
        wrapped function that freezes its arguments
    """

    @functools.wraps(func)
    def wrapped(*args, **kwargs):
        args = tuple(freeze(arg) for arg in args)
        kwargs = {key: freeze(value) for key, value in kwargs.items()}
        return func(*args, **kwargs)
    return wrapped
