# tabs/prompts/notifier.py
from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence

logger = logging.getLogger(__name__)

SelectionCallback = Callable[[list], Any]


class ChangeNotifier:
    """
    Forwards the flattened selection to exactly one subscriber.
    project() maps each selected entity to what the subscriber receives
    (identity when omitted).
    """

    def __init__(self, callback: Optional[SelectionCallback] = None,
                 project: Optional[Callable[[Any], Any]] = None):
        self._callback = callback
        self._project = project or (lambda ent: ent)
        self.last: list = []

    def connect(self, callback: Optional[SelectionCallback]) -> None:
        """Replace the subscriber (None disconnects)."""
        self._callback = callback

    def publish(self, selected: Sequence[Any]) -> list:
        payload = [self._project(ent) for ent in selected]
        self.last = payload
        if self._callback is not None:
            logger.debug("Publishing selection of %d entities", len(payload))
            self._callback(list(payload))
        return payload
