import socket


def grab_banner(host: str, port: int, buf: bytearray, timeout: float) -> int:
    """
    Connects to host:port and makes a single bounded read into buf.

    Returns the number of banner bytes read. Connect failures are raised
    as-is; read failures (timeout, reset, EOF) are not, so an open port
    that stays silent or hangs up still counts as open with 0 bytes.
    """
    with socket.create_connection((host, port), timeout=timeout) as sock:
        # Read deadline
        sock.settimeout(timeout)
        try:
            return sock.recv_into(buf)
        except OSError:
            return 0
