# File: wireless_dev/cli.py
from __future__ import annotations

import asyncio
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from wireless_dev import __version__
from wireless_dev.adb.adb_client import ADBError, AdbClient, AdbNotFoundError
from wireless_dev.adb.device_discovery import list_connected_devices
from wireless_dev.adb.output_parser import (
    filter_dev_packages,
    filter_dev_processes,
    is_valid_address,
)
from wireless_dev.config import Settings, configure_logging
from wireless_dev.dev_server import DevServer, DevServerError
from wireless_dev.discovery.local_network import get_local_ipv4_address
from wireless_dev.discovery.sweep import DiscoveryError, DiscoverySweep
from wireless_dev.known_devices import KnownDeviceStore
from wireless_dev.models import Device, HostStatus
from wireless_dev.qr import connection_uri, render_qr
from wireless_dev.wireless_setup import (
    WirelessSetupError,
    connect_device,
    disconnect_device,
    enable_wireless,
)

app = typer.Typer(help="CLI tool for wireless React Native/Expo development", no_args_is_help=True)
console = Console()
logger = logging.getLogger(__name__)

ADB_MISSING_MESSAGE = (
    "ADB is not installed or not in PATH. Please install Android SDK platform-tools and add adb to your PATH."
)


@dataclass
class AppState:
    settings: Settings
    client: AdbClient
    store: KnownDeviceStore


def _state(ctx: typer.Context) -> AppState:
    return ctx.obj


def _fail(message: str, code: int = 1) -> typer.Exit:
    console.print(f"[red]{message}[/red]")
    return typer.Exit(code=code)


@contextmanager
def _command_errors() -> Iterator[None]:
    """Print library errors in red and turn them into a non-zero exit status."""
    try:
        yield
    except AdbNotFoundError:
        raise _fail(ADB_MISSING_MESSAGE)
    except (ADBError, DiscoveryError, WirelessSetupError, DevServerError) as exc:
        raise _fail(str(exc))


def _require_adb(state: AppState) -> None:
    with _command_errors():
        asyncio.run(state.client.ensure_available())


def _choose(message: str, choices: Sequence[Tuple[str, str]]) -> str:
    """Numbered menu over (label, value) pairs; returns the chosen value."""
    if len(choices) == 1:
        return choices[0][1]
    console.print(f"[bold]{message}[/bold]")
    for index, (label, _value) in enumerate(choices, start=1):
        console.print(f"  {index}) {label}")
    picked = Prompt.ask(
        "Choice",
        choices=[str(i) for i in range(1, len(choices) + 1)],
        default="1",
        console=console,
    )
    return choices[int(picked) - 1][1]


def _prompt_address() -> str:
    while True:
        value = Prompt.ask("Enter device IP and port (e.g., 192.168.1.100:5555)", console=console).strip()
        if is_valid_address(value):
            return value
        console.print("[red]Please enter a valid IP address and optional port[/red]")


def _list_devices(state: AppState) -> List[Device]:
    with _command_errors():
        return asyncio.run(list_connected_devices(state.client))


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"wireless-dev {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    configure_logging(verbose, console=console)
    settings = Settings()
    store = KnownDeviceStore(settings.config_file)
    store.load()
    ctx.obj = AppState(
        settings=settings,
        client=AdbClient(adb_path=settings.adb_path),
        store=store,
    )


@app.command("list")
def list_command(ctx: typer.Context) -> None:
    """List all connected devices."""
    state = _state(ctx)
    _require_adb(state)
    with console.status("Getting connected devices..."):
        devices = _list_devices(state)

    if not devices:
        console.print('[yellow]No devices connected. Use "wireless-dev discover" to find devices.[/yellow]')
        return

    table = Table(title="Connected Devices", box=box.SIMPLE_HEAVY)
    table.add_column("Device ID")
    table.add_column("Status")
    table.add_column("Model")
    table.add_column("Android")
    table.add_column("Type")
    for device in devices:
        status_style = "green" if device.is_ready else "red"
        type_style = "blue" if device.wireless else "yellow"
        table.add_row(
            device.identifier,
            f"[{status_style}]{device.status.value}[/{status_style}]",
            device.model or "Unknown",
            device.platform_version or "N/A",
            f"[{type_style}]{device.connection_type}[/{type_style}]",
        )
    console.print(table)


@app.command("discover")
def discover_command(
    ctx: typer.Context,
    disconnect_probed: bool = typer.Option(
        False,
        "--disconnect-probed",
        help="Disconnect hosts that the sweep itself connected.",
    ),
) -> None:
    """Discover devices on the network."""
    state = _state(ctx)
    _require_adb(state)
    settings = state.settings
    sweep = DiscoverySweep(
        state.client,
        port=settings.adb_port,
        probe_timeout=settings.probe_timeout,
        max_concurrent_probes=settings.max_concurrent_probes,
        host_boundary=settings.host_boundary_match,
    )
    with console.status("Discovering devices on network..."):
        with _command_errors():
            result = asyncio.run(sweep.run())
    console.print(f"[green]Device discovery completed[/green] (local address {result.local_address})")

    if not result.hosts:
        console.print(
            "[yellow]No devices discoverable on the network. "
            "Make sure they have wireless debugging enabled.[/yellow]"
        )
        return

    table = Table(title="Discovered Devices", box=box.SIMPLE_HEAVY)
    table.add_column("IP Address")
    table.add_column("Status")
    for host in result.hosts:
        if host.status is HostStatus.CONNECTED:
            table.add_row(host.address, "[green]Connected[/green]")
        else:
            table.add_row(host.address, "[blue]Discoverable[/blue]")
    console.print(table)

    if disconnect_probed and result.discoverable:
        released = asyncio.run(sweep.release(result.discoverable))
        console.print(f"Disconnected {len(released)} probed host(s).")


@app.command("connect")
def connect_command(
    ctx: typer.Context,
    ip: Optional[str] = typer.Option(None, "--ip", "-i", help="Device IP address and port (e.g., 192.168.1.100:5555)"),
) -> None:
    """Connect to a device wirelessly."""
    state = _state(ctx)
    _require_adb(state)
    address = ip
    if not address:
        if state.store.devices:
            address = _choose(
                "Select a device to connect to:",
                [(device.display_name(), device.ip) for device in state.store.devices],
            )
        else:
            address = _prompt_address()
    elif not is_valid_address(address):
        raise _fail(f"Invalid address: {address}")

    with console.status(f"Connecting to {address}..."):
        with _command_errors():
            message = asyncio.run(connect_device(state.client, state.store, address, port=state.settings.adb_port))
    console.print(f"[green]{message}[/green]")


@app.command("disconnect")
def disconnect_command(
    ctx: typer.Context,
    ip: Optional[str] = typer.Option(None, "--ip", "-i", help="Device IP address and port (e.g., 192.168.1.100:5555)"),
) -> None:
    """Disconnect from a wireless device."""
    state = _state(ctx)
    _require_adb(state)
    address = ip
    if not address:
        wireless = [device for device in _list_devices(state) if device.wireless]
        if not wireless:
            console.print("[yellow]No wireless devices connected.[/yellow]")
            raise typer.Exit(code=1)
        address = _choose(
            "Select a device to disconnect:",
            [(device.display_name(), device.identifier) for device in wireless],
        )

    with _command_errors():
        disconnected = asyncio.run(disconnect_device(state.client, address))
    if not disconnected:
        raise _fail(f"Failed to disconnect from {address}")
    console.print(f"[yellow]Disconnected from {address}[/yellow]")


def _enable_wireless(state: AppState, device_id: str) -> Optional[str]:
    """Run enable-wireless with console feedback; returns the listening address."""
    with console.status(f"Enabling wireless debugging on {device_id}..."):
        with _command_errors():
            result = asyncio.run(enable_wireless(state.client, state.store, device_id, port=state.settings.adb_port))
    if result.already_wireless:
        console.print(f"[yellow]Device {device_id} is already connected wirelessly[/yellow]")
        return result.address
    if result.legacy_lookup:
        console.print("[yellow]Used legacy address lookup for Android 10 and below.[/yellow]")
    console.print(f"[green]Wireless debugging enabled. Device address: {result.address}[/green]")
    console.print(f"[blue]Wait a few seconds and then connect with: adb connect {result.address}[/blue]")
    return result.address


@app.command("enable-wireless")
def enable_wireless_command(
    ctx: typer.Context,
    device: Optional[str] = typer.Option(None, "--device", "-d", help="Device ID (from adb devices)"),
) -> None:
    """Enable wireless debugging on a USB connected device."""
    state = _state(ctx)
    _require_adb(state)
    device_id = device
    if not device_id:
        usb = [d for d in _list_devices(state) if not d.wireless and d.is_ready]
        if not usb:
            console.print("[yellow]No USB devices connected. Connect a device via USB first.[/yellow]")
            raise typer.Exit(code=1)
        device_id = _choose(
            "Select a USB device to enable wireless debugging:",
            [(d.display_name(), d.identifier) for d in usb],
        )
    _enable_wireless(state, device_id)


@app.command("info")
def info_command(
    ctx: typer.Context,
    device: Optional[str] = typer.Option(None, "--device", "-d", help="Device ID (from adb devices)"),
) -> None:
    """Show details of a connected device."""
    state = _state(ctx)
    _require_adb(state)
    devices = _list_devices(state)
    if not devices:
        console.print("[yellow]No devices connected.[/yellow]")
        raise typer.Exit(code=1)

    if device:
        devices = [d for d in devices if d.identifier == device]
        if not devices:
            raise _fail(f"Device {device} not found.")
    elif len(devices) > 1:
        chosen = _choose("Select a device to show info:", [(d.display_name(), d.identifier) for d in devices])
        devices = [d for d in devices if d.identifier == chosen]
    target = devices[0]

    details = Table(box=box.SIMPLE, show_header=False)
    details.add_column("Property", style="blue")
    details.add_column("Value")
    details.add_row("ID", target.identifier)
    details.add_row("Status", target.status.value)
    details.add_row("Model", target.model or "Unknown")
    details.add_row("Manufacturer", target.manufacturer or "Unknown")
    details.add_row("Android Version", target.platform_version or "Unknown")
    details.add_row("Connection Type", target.connection_type)
    console.print(Panel(details, title="Device Information", expand=False))

    with _command_errors():
        ps_output = asyncio.run(state.client.shell(target.identifier, "ps -A", check=False))
        if not ps_output.strip():
            ps_output = asyncio.run(state.client.shell(target.identifier, "ps", check=False))
        packages_output = asyncio.run(state.client.shell(target.identifier, "pm list packages", check=False))

    services = filter_dev_processes(ps_output)
    console.print("[green]Running Development Services[/green]")
    if services:
        for service in services:
            console.print(service, markup=False, highlight=False)
    else:
        console.print("[yellow]No React Native/Expo services detected.[/yellow]")

    packages = filter_dev_packages(packages_output)
    console.print("[green]Installed Development Packages[/green]")
    if packages:
        for package in packages:
            console.print(package, markup=False, highlight=False)
    else:
        console.print("[yellow]No development packages detected.[/yellow]")


@app.command("qr")
def qr_command(
    ctx: typer.Context,
    device: Optional[str] = typer.Option(
        None, "--device", "-d", help="Device ID to generate QR code for (must be connected via USB)"
    ),
) -> None:
    """Generate QR code for wireless connection."""
    state = _state(ctx)
    _require_adb(state)
    settings = state.settings
    if device:
        address = _enable_wireless(state, device)
        time.sleep(settings.wireless_settle_delay)
    else:
        address = get_local_ipv4_address()

    uri = connection_uri(address, port=settings.adb_port, scheme=settings.qr_scheme)
    console.print("[blue]Scan this QR code on your device to connect wirelessly:[/blue]")
    console.print(render_qr(uri), markup=False, highlight=False)
    console.print(f"[blue]{uri}[/blue]")
    manual = uri.split("://", 1)[1]
    console.print(f"[blue]Or connect manually with: adb connect {manual}[/blue]")
    console.print(
        f'[yellow]Note: your device needs a QR scanner app that can handle the "{settings.qr_scheme}://" '
        "protocol. Some devices have to be connected manually.[/yellow]"
    )


@app.command("expo-start")
def expo_start_command(
    ctx: typer.Context,
    device: Optional[str] = typer.Option(
        None, "--device", "-d", help="Device ID to connect (must be already wireless or connected via USB)"
    ),
) -> None:
    """Start the Expo development server bound to the local network address."""
    state = _state(ctx)
    _require_adb(state)
    settings = state.settings
    if device:
        known = {d.identifier: d for d in _list_devices(state)}
        target = known.get(device)
        if target is None:
            raise _fail(f"Device {device} not found")
        if not target.wireless:
            console.print("[blue]Device is connected via USB. Enabling wireless debugging...[/blue]")
            _enable_wireless(state, device)
            time.sleep(settings.wireless_settle_delay)

    host = get_local_ipv4_address()
    console.print(f"[green]Starting Expo server on {host}...[/green]")
    server = DevServer(settings.dev_server_command, host)
    with _command_errors():
        server.start()
    try:
        code = server.stream(lambda line: console.print(line, markup=False, highlight=False))
    except KeyboardInterrupt:
        server.stop()
        raise typer.Exit(code=130)
    if code != 0:
        raise _fail(f"Expo server exited with status {code}", code=code)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
