from wireless_dev.qr import connection_uri, render_qr


def test_connection_uri_appends_default_port() -> None:
    assert connection_uri("192.168.1.23") == "adbwireless://192.168.1.23:5555"
    assert connection_uri("192.168.1.23:4444") == "adbwireless://192.168.1.23:4444"
    assert connection_uri("10.0.0.2", port=5037, scheme="adb") == "adb://10.0.0.2:5037"


def test_render_qr_produces_square_block() -> None:
    rendered = render_qr("adbwireless://192.168.1.23:5555")

    lines = [line for line in rendered.splitlines() if line]
    assert len(lines) > 5
    assert len({len(line) for line in lines}) == 1
