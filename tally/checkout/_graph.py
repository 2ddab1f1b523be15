"""
Compiled graph — thin runner over nodnod.

Compile a target once, run it per request:

    @G.node
    class TotalsNode:
        @classmethod
        def __compose__(cls, subtotal: SubtotalNode, ...) -> "TotalsNode": ...

    quote_graph = G.graph(TotalsNode)
    node = await quote_graph(checkout_input, stores)

Every input is injected under its runtime type; nodnod discovers the rest of
the nodes from the target's `__compose__` signature.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, cast
from collections.abc import Callable, Coroutine

from nodnod import Scope, Value, EventLoopAgent, Node
from nodnod import scalar_node as node

from tally.checkout._errors import CheckoutError


# ═══════════════════════════════════════════════════════════════════════════════
# TypedScope
# ═══════════════════════════════════════════════════════════════════════════════


class TypedScope:
    """Type-safe wrapper around nodnod.Scope."""

    __slots__ = ("_scope",)

    def __init__(self, detail: str = "scope") -> None:
        self._scope = Scope(detail=detail)

    @property
    def inner(self) -> Scope:
        return self._scope

    def inject[T](self, typ: type[T], value: T) -> TypedScope:
        self._scope.push(Value(typ, value))
        return self

    def get[T](self, typ: type[T]) -> T:
        result = self._scope.get(typ)
        if result is None:
            raise KeyError(f"{typ.__name__} not found in scope")
        return cast(T, result.value)

    async def __aenter__(self) -> TypedScope:
        await self._scope.__aenter__()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self._scope.__aexit__(*args)


# ═══════════════════════════════════════════════════════════════════════════════
# Compiled
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class Compiled[T]:
    """Pre-compiled graph for repeated execution."""

    _target: type[T]
    _agent: EventLoopAgent

    @property
    def target(self) -> type[T]:
        return self._target

    async def __call__(self, *inputs: object) -> T:
        async with TypedScope(detail=self._target.__name__) as scope:
            for value in inputs:
                scope.inject(cast(type[Any], type(value)), value)

            run_method = cast(
                Callable[[Scope, dict[type[Any], Scope]], Coroutine[Any, Any, None]],
                getattr(self._agent, "run"),
            )
            await run_method(scope.inner, {})

            return scope.get(self._target)


def graph[T](target: type[T]) -> Compiled[T]:
    """Pre-compile the graph that produces `target`."""
    all_nodes: set[type[Node[Any, Any]]] = {cast(type[Node[Any, Any]], target)}
    agent = EventLoopAgent.build(all_nodes)
    return Compiled(_target=target, _agent=agent)


# ═══════════════════════════════════════════════════════════════════════════════
# Errors raised inside nodes
# ═══════════════════════════════════════════════════════════════════════════════


def first_checkout_error(group: BaseExceptionGroup[CheckoutError]) -> CheckoutError:
    """First leaf of a (possibly nested) group raised by the node runner."""
    leaf: BaseException = group
    while isinstance(leaf, BaseExceptionGroup):
        leaf = leaf.exceptions[0]
    return cast(CheckoutError, leaf)


__all__ = ("node", "TypedScope", "Compiled", "graph", "first_checkout_error")
