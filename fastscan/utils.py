import re
import secrets
from typing import Callable, FrozenSet, List


class PortSpecError(ValueError):
    """Raised when a port specification cannot be parsed."""


class EntropyError(RuntimeError):
    """
    Raised when the OS random source fails.
    Scanning can't continue without it, so this is always fatal.
    """


def secure_randbelow(n: int) -> int:
    """
    Returns a uniformly random int in [0, n) from the OS CSPRNG.
    """
    try:
        return secrets.randbelow(n)
    except (OSError, NotImplementedError) as e:
        raise EntropyError(f"Unable to read from random source: {e}") from e


def join_host_port(host: str, port: int) -> str:
    """
    Formats a host:port target, bracketing IPv6 literals.
    Example: ("::1", 22) -> "[::1]:22"
    """
    if ':' in host and not host.startswith('['):
        return f"[{host}]:{port}"
    return f"{host}:{port}"


_INTEGER = re.compile(r"[+-]?[0-9]+")


def _parse_int(text: str, token: str) -> int:
    # int() alone would also take whitespace and underscores
    if not _INTEGER.fullmatch(text):
        raise PortSpecError(f"invalid port {text!r} in {token!r}")
    return int(text)


def parse_ports(port_input: str) -> FrozenSet[int]:
    """
    Parses a comma-separated list of ports and inclusive ranges into a set.
    Example: "22,80,8000-8002" -> {22, 80, 8000, 8001, 8002}

    Empty tokens are skipped. Bounds are not checked against 1-65535.
    """
    ports = set()

    for token in port_input.split(','):
        if not token:
            continue

        if '-' not in token:
            ports.add(_parse_int(token, token))
            continue

        bounds = token.split('-')
        if len(bounds) != 2:
            raise PortSpecError(
                f"port range {token!r} not two numbers separated by a hyphen")
        if not bounds[0]:
            raise PortSpecError(f"missing lower bound in {token!r}")
        if not bounds[1]:
            raise PortSpecError(f"missing upper bound in {token!r}")

        start = _parse_int(bounds[0], token)
        end = _parse_int(bounds[1], token)
        ports.update(range(start, end + 1))

    return frozenset(ports)


def shuffle_ports(ports, randbelow: Callable[[int], int] = secure_randbelow) -> List[int]:
    """
    Fisher-Yates shuffle driven by a cryptographically strong source.
    Returns a new list; the input is left untouched.
    """
    sequence = sorted(ports)
    for i in range(len(sequence) - 1, 0, -1):
        j = randbelow(i + 1)
        sequence[i], sequence[j] = sequence[j], sequence[i]
    return sequence


def build_port_list(port_input: str) -> List[int]:
    """
    Parses a port spec and returns its ports in random order.
    """
    return shuffle_ports(parse_ports(port_input))
