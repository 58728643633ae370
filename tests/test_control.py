"""Unit tests for the two-layer operational control."""

from __future__ import annotations

import pytest

from flightsurety.control import Layer, OperationalControl
from flightsurety.errors import AuthorizationError, OperationalError


def test_layers_start_operational() -> None:
    control = OperationalControl(app_owner="ops", data_owner="dba")
    assert control.is_operational(Layer.APP) is True
    assert control.is_operational(Layer.DATA) is True
    assert control.owner(Layer.APP) == "ops"
    assert control.owner(Layer.DATA) == "dba"


def test_only_the_layer_owner_can_flip_its_switch() -> None:
    control = OperationalControl(app_owner="ops", data_owner="dba")

    with pytest.raises(AuthorizationError):
        control.set_operating_status(False, Layer.APP, "dba")
    with pytest.raises(AuthorizationError):
        control.set_operating_status(False, Layer.DATA, "ops")

    assert control.is_operational(Layer.APP) is True
    assert control.is_operational(Layer.DATA) is True


def test_switches_are_independent() -> None:
    control = OperationalControl(app_owner="ops", data_owner="dba")

    control.set_operating_status(False, Layer.APP, "ops")

    assert control.is_operational(Layer.APP) is False
    assert control.is_operational(Layer.DATA) is True
    with pytest.raises(OperationalError):
        control.require_operational(Layer.APP)
    control.require_operational(Layer.DATA)


def test_set_operating_status_reports_changes() -> None:
    control = OperationalControl(app_owner="ops", data_owner="ops")
    assert control.set_operating_status(False, Layer.DATA, "ops") is True
    assert control.set_operating_status(False, Layer.DATA, "ops") is False
    assert control.set_operating_status(True, Layer.DATA, "ops") is True
