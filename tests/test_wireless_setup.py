from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from tests.fakes import FakeAdbClient, line
from wireless_dev.known_devices import KnownDeviceStore
from wireless_dev.wireless_setup import (
    ConnectFailedError,
    DeviceNotFoundError,
    WifiAddressError,
    connect_device,
    enable_wireless,
)

USB_SERIAL = "R58M123ABC"


def _props(version: str) -> dict:
    return {
        USB_SERIAL: {
            "ro.product.model": "SM-G991B",
            "ro.build.version.release": version,
            "ro.product.manufacturer": "samsung",
        }
    }


def _store(tmp_path: Path) -> KnownDeviceStore:
    store = KnownDeviceStore(tmp_path / "config.json")
    store.load()
    return store


def test_enable_wireless_uses_route_table_on_android_11(tmp_path: Path) -> None:
    client = FakeAdbClient(
        listing=[line(USB_SERIAL)],
        props=_props("11"),
        shell_outputs={
            (USB_SERIAL, "ip route"): "192.168.1.0/24 dev wlan0 proto kernel scope link src 192.168.1.23\n",
        },
    )
    store = _store(tmp_path)

    result = asyncio.run(enable_wireless(client, store, USB_SERIAL))

    assert result.address == "192.168.1.23:5555"
    assert result.legacy_lookup is False
    assert client.tcpip_calls == [(USB_SERIAL, 5555)]
    saved = KnownDeviceStore(tmp_path / "config.json").load()
    assert [(d.id, d.ip, d.model) for d in saved] == [(USB_SERIAL, "192.168.1.23:5555", "SM-G991B")]


def test_enable_wireless_empty_route_reports_wifi_error_and_does_not_record(tmp_path: Path) -> None:
    client = FakeAdbClient(
        listing=[line(USB_SERIAL)],
        props=_props("11"),
        shell_outputs={(USB_SERIAL, "ip route"): ""},
    )
    store = _store(tmp_path)

    with pytest.raises(WifiAddressError, match="Wi-Fi"):
        asyncio.run(enable_wireless(client, store, USB_SERIAL))

    assert client.tcpip_calls == []
    assert store.devices == []
    assert not (tmp_path / "config.json").exists()


def test_enable_wireless_legacy_lookup_below_android_11(tmp_path: Path) -> None:
    client = FakeAdbClient(
        listing=[line(USB_SERIAL)],
        props=_props("10"),
        shell_outputs={
            (USB_SERIAL, "ip addr show wlan0"): "    inet 10.0.0.44/24 brd 10.0.0.255 scope global wlan0\n",
        },
    )

    result = asyncio.run(enable_wireless(client, _store(tmp_path), USB_SERIAL))

    assert result.address == "10.0.0.44:5555"
    assert result.legacy_lookup is True
    assert (USB_SERIAL, "ip route") not in client.shell_calls


def test_enable_wireless_unknown_device(tmp_path: Path) -> None:
    client = FakeAdbClient(listing=[line(USB_SERIAL)], props=_props("13"))

    with pytest.raises(DeviceNotFoundError):
        asyncio.run(enable_wireless(client, _store(tmp_path), "missing"))


def test_enable_wireless_already_wireless_is_a_no_op(tmp_path: Path) -> None:
    client = FakeAdbClient(listing=[line("192.168.1.12:5555")])
    store = _store(tmp_path)

    result = asyncio.run(enable_wireless(client, store, "192.168.1.12:5555"))

    assert result.already_wireless is True
    assert client.tcpip_calls == []
    assert store.devices == []


def test_connect_device_appends_then_touches_known_device(tmp_path: Path) -> None:
    client = FakeAdbClient(
        reachable={"192.168.1.30:5555"},
        props={"192.168.1.30:5555": {"ro.product.model": "Pixel 7"}},
    )
    store = _store(tmp_path)

    message = asyncio.run(connect_device(client, store, "192.168.1.30"))

    assert "connected to 192.168.1.30:5555" in message
    assert [(d.ip, d.model) for d in store.devices] == [("192.168.1.30:5555", "Pixel 7")]

    first_seen = store.devices[0].last_connected
    store.devices[0].last_connected = "2000-01-01T00:00:00+00:00"
    asyncio.run(connect_device(client, store, "192.168.1.30:5555"))

    assert len(store.devices) == 1
    assert store.devices[0].last_connected != "2000-01-01T00:00:00+00:00"
    assert first_seen


def test_connect_device_failure_raises(tmp_path: Path) -> None:
    client = FakeAdbClient()
    store = _store(tmp_path)

    with pytest.raises(ConnectFailedError, match="Connection refused"):
        asyncio.run(connect_device(client, store, "192.168.1.31:5555"))
    assert store.devices == []
