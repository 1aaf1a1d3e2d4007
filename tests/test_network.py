"""Endpoint registry and fire controller."""
from __future__ import annotations

from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

from gunnery.control.controller import SYNC_INTERVAL_TICKS, FireController
from gunnery.control.trigger import TriggerMode
from gunnery.engine.clock import TickClock
from gunnery.network import WeaponNetwork


def test_move_rekeys_endpoint() -> None:
    network = WeaponNetwork()
    network.register("overworld", (0, 64, 0), "battery-a")
    assert network.move("overworld", (0, 64, 0), (1, 64, 0))
    assert network.network_at("overworld", (1, 64, 0)) == "battery-a"
    assert network.network_at("overworld", (0, 64, 0)) is None


def test_move_onto_itself_is_accepted() -> None:
    network = WeaponNetwork()
    network.register("overworld", (0, 64, 0), "battery-a")
    assert network.move("overworld", (0, 64, 0), (0, 64, 0))
    assert network.endpoints("overworld") == ((0, 64, 0),)


def test_move_rejections() -> None:
    network = WeaponNetwork()
    network.register("overworld", (0, 64, 0), "battery-a")
    network.register("overworld", (5, 64, 0), "battery-b")
    assert not network.move("overworld", (9, 9, 9), (1, 64, 0))
    assert not network.move("overworld", (0, 64, 0), (5, 64, 0))
    assert not network.move("nether", (0, 64, 0), (1, 64, 0))
    assert network.network_at("overworld", (5, 64, 0)) == "battery-b"
    assert network.unregister("overworld", (0, 64, 0)) == "battery-a"


def test_controller_syncs_on_interval() -> None:
    clock = TickClock()
    network = WeaponNetwork()
    network.register("overworld", (0, 64, 0), "battery-a")
    controller = FireController((0, 64, 0), "overworld", network, clock)

    clock.advance()
    controller.move_to((2, 64, 0))
    controller.tick()
    assert controller.last_known_pos == (0, 64, 0)

    clock.advance(SYNC_INTERVAL_TICKS - 1)
    controller.tick()
    assert controller.last_known_pos == (2, 64, 0)
    assert network.network_at("overworld", (2, 64, 0)) == "battery-a"


def test_controller_keeps_position_when_move_rejected() -> None:
    clock = TickClock()
    network = WeaponNetwork()
    network.register("overworld", (0, 64, 0), "battery-a")
    network.register("overworld", (1, 64, 0), "battery-b")
    controller = FireController((0, 64, 0), "overworld", network, clock)
    controller.move_to((1, 64, 0))
    assert not controller.sync_endpoint()
    assert controller.last_known_pos == (0, 64, 0)


def test_reload_never_resumes_firing() -> None:
    clock = TickClock()
    network = WeaponNetwork()
    network.register("overworld", (0, 64, 0), "battery-a")
    controller = FireController((0, 64, 0), "overworld", network, clock, repeater_probe=lambda: 2)
    controller.set_powered(True)
    assert controller.powered
    data = controller.as_dict()
    assert data["lastKnownPos"] == [0, 64, 0]

    restored = FireController.from_dict(data, (0, 64, 0), "overworld", network, clock)
    assert restored.trigger.mode is TriggerMode.PULSING
    restored.on_load()
    assert restored.trigger.mode is TriggerMode.OFF
    assert not restored.powered


def test_lookups_do_not_create_dimensions() -> None:
    network = WeaponNetwork()
    assert network.network_at("nether", (0, 0, 0)) is None
    assert network.endpoints("nether") == ()
    assert not network.move("nether", (0, 0, 0), (1, 0, 0))
    assert network.unregister("nether", (0, 0, 0)) is None
    assert "nether" not in network._endpoints


def test_malformed_saved_position_falls_back_to_current() -> None:
    clock = TickClock()
    network = WeaponNetwork()
    network.register("overworld", (3, 64, 3), "battery-a")
    for stored in (7, "abc", [1, 2]):
        controller = FireController.from_dict(
            {"lastKnownPos": stored}, (3, 64, 3), "overworld", network, clock
        )
        assert controller.last_known_pos == (3, 64, 3)
