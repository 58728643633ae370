import dataclasses
import json
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

from flightsurety.types import FlightKey

# JSON-safe conversion of ledger records ----------------------------


class JSONable:
    """Mixin turning ledger records and agent views into plain JSON data."""

    def _to_jsonable(self, obj: Any) -> Any:  # noqa: ANN401 – generic helper
        """Return *obj* converted into JSON-serialisable structures.

        • FlightKey → ``"airline:flight@timestamp"`` (also as a dict key)
        • dataclasses → dict of their fields, converted recursively
        • set → sorted list when the members are comparable
        • Enum → value, Decimal → str, Path → str
        """

        if isinstance(obj, FlightKey):
            return str(obj)

        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return {f.name: self._to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}

        if isinstance(obj, dict):
            return {self._key(k): self._to_jsonable(v) for k, v in obj.items()}

        if isinstance(obj, (list, tuple)):
            return [self._to_jsonable(v) for v in obj]

        if isinstance(obj, (set, frozenset)):
            try:
                members = sorted(obj)
            except TypeError:
                members = list(obj)
            return [self._to_jsonable(v) for v in members]

        if isinstance(obj, Enum):
            return obj.value

        if isinstance(obj, (Decimal, Path)):
            return str(obj)

        return obj

    def _key(self, key: Any) -> Any:  # noqa: ANN401
        if isinstance(key, (str, int, float, bool)) or key is None:
            return key
        converted = self._to_jsonable(key)
        return converted if isinstance(converted, str) else json.dumps(converted)

    def dumps(self, obj: Any, **kwargs: Any) -> str:  # noqa: ANN401
        return json.dumps(self._to_jsonable(obj), **kwargs)
