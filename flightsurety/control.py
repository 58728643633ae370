"""Operational control: two independent pause switches.

The application layer (governance, oracle coordination, insurance) and the
data layer (ledger records) are paused separately. Each switch is owned by a
single identity and only that identity may flip it, so business logic can be
halted while data stays queryable, and vice versa.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict

from flightsurety.errors import AuthorizationError, OperationalError
from flightsurety.types import Identity

LOGGER = logging.getLogger(__name__)


class Layer(Enum):
    """Layers gated by a pause switch."""

    APP = "app"
    DATA = "data"


@dataclass
class LayerSwitch:
    """Pause switch for one layer, bound to its owner."""

    layer: Layer
    owner: Identity
    operational: bool = True


class OperationalControl:
    """Holds one :class:`LayerSwitch` per layer."""

    def __init__(self, app_owner: Identity, data_owner: Identity) -> None:
        self._switches: Dict[Layer, LayerSwitch] = {
            Layer.APP: LayerSwitch(Layer.APP, app_owner),
            Layer.DATA: LayerSwitch(Layer.DATA, data_owner),
        }
        self._lock = threading.Lock()

    def owner(self, layer: Layer) -> Identity:
        return self._switches[layer].owner

    def is_operational(self, layer: Layer = Layer.APP) -> bool:
        return self._switches[layer].operational

    def require_operational(self, layer: Layer) -> None:
        """Raise :class:`OperationalError` if ``layer`` is paused."""
        if not self._switches[layer].operational:
            raise OperationalError(f"{layer.value} layer is not operational")

    def set_operating_status(self, mode: bool, layer: Layer, caller: Identity) -> bool:
        """Flip ``layer``'s switch; only its owner may do so.

        Returns True when the value actually changed.
        """
        switch = self._switches[layer]
        if caller != switch.owner:
            raise AuthorizationError(f"{caller} does not own the {layer.value} layer switch")
        with self._lock:
            changed = switch.operational != mode
            switch.operational = mode
        if changed:
            LOGGER.info("%s layer operational=%s (by %s)", layer.value, mode, caller)
        return changed


__all__ = ["Layer", "LayerSwitch", "OperationalControl"]
