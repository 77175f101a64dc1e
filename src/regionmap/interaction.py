"""Hover tracking and the outbound region-selection channel."""

from __future__ import annotations

import logging
from typing import Callable

from .models import InteractionState


_LOGGER = logging.getLogger("regionmap.interaction")

SelectCallback = Callable[[str], None]


class RegionInteraction:
    """Pointer state for drawn region shapes.

    Hover lives here. Selection does not: a click only reports the region
    name through ``on_select`` and the host passes its selected value back
    in when it asks for a state snapshot.
    """

    def __init__(self, on_select: SelectCallback | None = None) -> None:
        self._on_select = on_select
        self._hovered: str | None = None

    @property
    def hovered(self) -> str | None:
        return self._hovered

    def enter(self, name: str) -> None:
        self._hovered = name

    def leave(self, name: str | None = None) -> None:
        _ = name
        self._hovered = None

    def clear(self) -> None:
        self._hovered = None

    def click(self, name: str) -> bool:
        """Report a click on a region shape; always stops propagation."""
        if self._on_select is not None:
            self._on_select(name)
        else:
            _LOGGER.debug("Region %s clicked with no selection callback registered", name)
        return True

    def state(self, selected: str | None) -> InteractionState:
        return InteractionState(hovered=self._hovered, selected=selected)
