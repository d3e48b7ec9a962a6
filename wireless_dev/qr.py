"""Terminal QR codes for wireless connection URIs."""

from __future__ import annotations

import io

import qrcode

from wireless_dev.adb.output_parser import DEFAULT_ADB_PORT


def connection_uri(address: str, port: int = DEFAULT_ADB_PORT, scheme: str = "adbwireless") -> str:
    """Build `scheme://ip:port`; an address that already carries a port keeps it."""
    if ":" not in address:
        address = f"{address}:{port}"
    return f"{scheme}://{address}"


def render_qr(data: str, invert: bool = False) -> str:
    """Render data as a QR code made of half-block characters."""
    qr = qrcode.QRCode(border=1, error_correction=qrcode.constants.ERROR_CORRECT_L)
    qr.add_data(data)
    qr.make(fit=True)
    buffer = io.StringIO()
    qr.print_ascii(out=buffer, invert=invert)
    return buffer.getvalue()
