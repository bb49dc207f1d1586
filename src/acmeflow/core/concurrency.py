"""Structured fan-out over :class:`asyncio.TaskGroup`."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Iterable

T = TypeVar("T")


async def gather_all(awaitables: Iterable[Awaitable[T]]) -> list[T]:
    """Run every awaitable concurrently and return the results in order.

    All-or-nothing: when one branch fails the task group cancels the
    branches still running and the first failure is re-raised as-is,
    not wrapped in an :class:`ExceptionGroup`.
    """
    tasks: list[asyncio.Task[T]] = []
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(_as_coroutine(aw)) for aw in awaitables]
    except BaseExceptionGroup as exc_group:
        raise _first_error(exc_group) from None
    return [task.result() for task in tasks]


async def _as_coroutine(awaitable: Awaitable[T]) -> T:
    return await awaitable


def _first_error(exc_group: BaseExceptionGroup) -> BaseException:
    first = exc_group.exceptions[0]
    if isinstance(first, BaseExceptionGroup):
        return _first_error(first)
    return first
