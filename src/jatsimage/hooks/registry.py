"""Hook registry: routes named host hooks to registered callbacks."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

SEQUENCE_CORE = 0
SEQUENCE_NORMAL = 256
SEQUENCE_LATE = 512
SEQUENCE_LAST = 768

HookCallback = Callable[..., Any]


class HookRegistry:
    """Runs callbacks registered for a hook name in sequence order.

    A callback that returns a truthy value handles the hook: later
    callbacks are not run and the value is returned to the caller.
    """

    def __init__(self) -> None:
        self._hooks: dict[str, list[tuple[int, int, HookCallback]]] = {}
        self._counter = 0

    def register(
        self, hook_name: str, callback: HookCallback, sequence: int = SEQUENCE_NORMAL
    ) -> None:
        """Register a callback for a hook.

        Callbacks with equal sequence run in registration order.
        """
        self._counter += 1
        callbacks = self._hooks.setdefault(hook_name, [])
        callbacks.append((sequence, self._counter, callback))
        callbacks.sort(key=lambda entry: (entry[0], entry[1]))

    def callbacks(self, hook_name: str) -> list[HookCallback]:
        """List the callbacks for a hook in the order they will run."""
        return [callback for _, _, callback in self._hooks.get(hook_name, [])]

    def call(self, hook_name: str, *args: Any) -> Any:
        """Call the callbacks for a hook until one handles it.

        Each callback receives the hook name followed by ``args``.

        Returns:
            The first truthy callback result, or False if none handled it.
        """
        for callback in self.callbacks(hook_name):
            result = callback(hook_name, *args)
            if result:
                logger.debug("Hook %s handled by %r", hook_name, callback)
                return result
        return False
