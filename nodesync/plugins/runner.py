"""Run plugin APIs across the registry."""
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Tuple

import anyio

from nodesync.actions import NodeActions, PluginActions
from nodesync.errors import SourcingError
from nodesync.graph.model import NodeSpec

from .registry import ON_CREATE_NODE, PluginDescriptor, PluginRegistry

if TYPE_CHECKING:  # pragma: no cover - import for type checking only
    from nodesync.obs.events import Reporter

LOGGER = logging.getLogger(__name__)

Call = Tuple[PluginDescriptor, str, Optional[NodeSpec]]


@dataclass
class ApiContext:
    """Options for a single :meth:`PluginRunner.run_api` call."""

    trace_id: str
    wait_for_cascading_actions: bool = False
    defer_node_mutation: bool = False
    parent_span: Any = None
    webhook_body: dict = field(default_factory=dict)
    plugin_name: Optional[str] = None


@dataclass
class PluginArgs:
    """Arguments handed to a plugin handler."""

    plugin: PluginDescriptor
    actions: PluginActions
    get_node: Callable[[str], Optional[NodeSpec]]
    webhook_body: dict
    trace_id: str
    parent_span: Any = None
    reporter: Optional["Reporter"] = None
    node: Optional[NodeSpec] = None


@dataclass
class PluginRunner:
    """Invoke an API on every plugin that implements it.

    Handlers run concurrently and may be plain functions or coroutines. A
    handler that raises aborts the call with :class:`SourcingError`.
    """

    registry: PluginRegistry
    actions: NodeActions
    reporter: Optional["Reporter"] = None

    async def run_api(self, api: str, context: ApiContext) -> List[Any]:
        """Run ``api`` and return each plugin's result in registry order.

        When ``context.wait_for_cascading_actions`` is set, nodes created
        during the call are handed to ``on_create_node`` handlers, and the
        call only returns once those follow-on actions settle. If any handler
        fails, the handlers still running are cancelled before the error is
        raised.
        """

        plugins = self.registry.implementing(api, plugin_name=context.plugin_name)
        if context.plugin_name is not None and not plugins:
            LOGGER.warning("No plugin named %s implements %s", context.plugin_name, api)

        created: List[NodeSpec] = []
        listener = created.append
        if context.wait_for_cascading_actions:
            self.actions.subscribe(listener)
        try:
            results = await self._run_all([(plugin, api, None) for plugin in plugins], context)
            if context.wait_for_cascading_actions:
                await self._drain_cascade(created, context)
        finally:
            if context.wait_for_cascading_actions:
                self.actions.unsubscribe(listener)
        return results

    async def _drain_cascade(self, created: List[NodeSpec], context: ApiContext) -> None:
        subscribers = self.registry.implementing(ON_CREATE_NODE)
        rounds = 0
        while created:
            batch = list(created)
            created.clear()
            rounds += 1
            calls: List[Call] = [
                (plugin, ON_CREATE_NODE, node)
                for node in batch
                for plugin in subscribers
                # plugins do not react to the nodes they created themselves
                if plugin.name != node.owner
            ]
            if not calls:
                continue
            LOGGER.debug("Cascade round %d: %d on_create_node call(s)", rounds, len(calls))
            await self._run_all(calls, context)

    async def _run_all(self, calls: List[Call], context: ApiContext) -> List[Any]:
        results: List[Any] = [None] * len(calls)

        async def run_one(index: int, plugin: PluginDescriptor, api: str, node: Optional[NodeSpec]) -> None:
            results[index] = await self._invoke(plugin, api, context, node=node)

        try:
            async with anyio.create_task_group() as group:
                for index, (plugin, api, node) in enumerate(calls):
                    group.start_soon(run_one, index, plugin, api, node)
        except Exception as exc:
            raise _first_error(exc)
        return results

    async def _invoke(
        self,
        plugin: PluginDescriptor,
        api: str,
        context: ApiContext,
        *,
        node: Optional[NodeSpec] = None,
    ) -> Any:
        args = PluginArgs(
            plugin=plugin,
            actions=self.actions.bind(plugin.name, defer=context.defer_node_mutation),
            get_node=self.actions.store.get_node,
            webhook_body=context.webhook_body,
            trace_id=context.trace_id,
            parent_span=context.parent_span,
            reporter=self.reporter,
            node=node,
        )
        handler = plugin.handlers[api]
        try:
            result = handler(args)
            if inspect.isawaitable(result):
                result = await result
        except SourcingError:
            raise
        except Exception as exc:
            LOGGER.error("Plugin %s failed in %s: %s", plugin.name, api, exc)
            raise SourcingError(plugin.name, api, f"Plugin '{plugin.name}' failed in '{api}': {exc}") from exc
        return result


def _first_error(exc: BaseException) -> BaseException:
    """Return the first leaf exception of a task group failure."""

    while isinstance(exc, BaseExceptionGroup) and exc.exceptions:
        exc = exc.exceptions[0]
    return exc
