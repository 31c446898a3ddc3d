"""
Tests for the command-line entry point.
Run with: pytest tests/test_main.py -v
"""
import argparse
import logging
import socket
import threading

import pytest

from fastscan.main import build_parser, main, parse_duration, setup_logging
from fastscan.scanner import PortScanner
from fastscan.utils import EntropyError
from fastscan.sink import results_logger


@pytest.fixture(autouse=True)
def restore_results_logger():
    package_logger = logging.getLogger("fastscan")
    handlers = list(results_logger.handlers)
    levels = (package_logger.level, results_logger.level)
    yield
    results_logger.handlers[:] = handlers
    results_logger.propagate = True
    package_logger.setLevel(levels[0])
    results_logger.setLevel(levels[1])


class TestParseDuration:
    """Test -w duration parsing"""

    @pytest.mark.parametrize("text,seconds", [
        ("1s", 1.0), ("500ms", 0.5), ("2m", 120.0), ("1.5", 1.5), ("1h", 3600.0),
    ])
    def test_valid(self, text, seconds):
        assert parse_duration(text) == pytest.approx(seconds)

    @pytest.mark.parametrize("text", ["", "fast", "1d", "-1s"])
    def test_invalid(self, text):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_duration(text)


class TestParser:
    """Test CLI flags and defaults"""

    def test_defaults(self):
        """Test the documented defaults"""
        args = build_parser().parse_args(["example.com"])
        assert args.target == "example.com"
        assert args.parallel == 128
        assert args.timeout == 1.0
        assert args.ports == "1-65535"
        assert args.length == 128
        assert not args.failures
        assert not args.retry

    def test_flags(self):
        """Test every flag is wired"""
        args = build_parser().parse_args(
            ["-n", "8", "-f", "-w", "250ms", "-p", "22,80", "-l", "64", "-r", "10.0.0.1"])
        assert (args.parallel, args.failures, args.timeout) == (8, True, 0.25)
        assert (args.ports, args.length, args.retry) == ("22,80", 64, True)

    def test_missing_target(self):
        """Test a missing target is rejected"""
        with pytest.raises(SystemExit) as exc:
            build_parser().parse_args([])
        assert exc.value.code != 0

    def test_extra_target(self):
        """Test only one target is accepted"""
        with pytest.raises(SystemExit) as exc:
            build_parser().parse_args(["10.0.0.1", "10.0.0.2"])
        assert exc.value.code != 0


class TestSetupLogging:
    """Test logging wiring"""

    def test_levels_set_when_root_already_configured(self):
        """Test INFO lines survive a root logger left at WARNING"""
        root = logging.getLogger()
        saved = root.level
        root.addHandler(logging.NullHandler())
        root.setLevel(logging.WARNING)
        try:
            setup_logging()
            assert results_logger.isEnabledFor(logging.INFO)
            assert logging.getLogger("fastscan.scanner").isEnabledFor(logging.INFO)
            assert logging.getLogger("fastscan.progress").isEnabledFor(logging.INFO)
        finally:
            root.setLevel(saved)
            root.handlers = [h for h in root.handlers if not isinstance(h, logging.NullHandler)]


class TestMain:
    """Test the full CLI flow"""

    def test_bad_port_spec_exits(self):
        """Test a malformed port list is fatal before scanning"""
        with pytest.raises(SystemExit) as exc:
            main(["-p", "1-2-3", "127.0.0.1"])
        assert exc.value.code == 1

    def test_bad_parallelism_exits(self):
        """Test invalid worker counts are rejected by validation"""
        with pytest.raises(SystemExit) as exc:
            main(["-n", "0", "-p", "80", "127.0.0.1"])
        assert exc.value.code == 1

    def test_scan_prints_success(self, capsys):
        """Test SUCCESS lines reach stdout"""
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server.bind(("127.0.0.1", 0))
        server.listen(1)
        port = server.getsockname()[1]

        def serve():
            conn, _ = server.accept()
            with conn:
                conn.sendall(b"HELLO")

        threading.Thread(target=serve, daemon=True).start()
        try:
            main(["-n", "2", "-w", "1s", "-p", str(port), "127.0.0.1"])
        finally:
            server.close()

        out = capsys.readouterr().out
        assert f"SUCCESS 127.0.0.1:{port} b'HELLO'" in out

    @pytest.mark.parametrize("error", [
        RuntimeError("can't start new thread"),
        EntropyError("Unable to read from random source"),
    ])
    def test_unexpected_error_exits(self, monkeypatch, capsys, error):
        """Test errors escaping the scan are fatal with exit status 1"""
        def broken_run(self):
            raise error

        monkeypatch.setattr(PortScanner, "run", broken_run)
        with pytest.raises(SystemExit) as exc:
            main(["-p", "80", "127.0.0.1"])
        assert exc.value.code == 1
        assert "Fatal Error" in capsys.readouterr().err
