import argparse
import logging
import re
import sys

from pydantic import ValidationError

from .ui import ScannerUI
from .scanner import PortScanner, ScanContext
from .utils import PortSpecError, build_port_list
from .config import ScanConfig
from .sink import results_logger

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(message)s"
LOG_DATEFMT = "%Y/%m/%d %H:%M:%S"

_DURATION = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)?")
_UNITS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600, None: 1}


def parse_duration(text):
    """
    Parses "1s", "500ms", "2m" or a bare number of seconds.
    """
    m = _DURATION.fullmatch(text.strip())
    if not m:
        raise argparse.ArgumentTypeError(f"invalid duration: {text!r}")
    return float(m.group(1)) * _UNITS[m.group(2)]


def setup_logging():
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, datefmt=LOG_DATEFMT,
                        stream=sys.stderr)
    # basicConfig is a no-op when the root logger already has handlers
    logging.getLogger("fastscan").setLevel(logging.INFO)
    # SUCCESS lines go to stdout on their own so they can be piped
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    results_logger.addHandler(handler)
    results_logger.setLevel(logging.INFO)
    results_logger.propagate = False


def build_parser():
    parser = argparse.ArgumentParser(
        description="fastscan - Somewhat speedy full-connect scanner. "
                    "Determines which of the ports on the given target are listening.")
    parser.add_argument("target", help="Target IP or Hostname")
    parser.add_argument("-n", "--parallel", type=int, default=128, metavar="N",
                        help="Scan N ports in parallel (Default: 128)")
    parser.add_argument("-f", "--failures", action="store_true",
                        help="Show failed connection attempts and other errors")
    parser.add_argument("-w", "--timeout", type=parse_duration, default=1.0,
                        help="Connection and banner-grab timeout, e.g. 1s, 500ms (Default: 1s)")
    parser.add_argument("-p", "--ports", default="1-65535", metavar="LIST",
                        help="Comma-separated list of ports and port ranges to scan "
                             "(Default: 1-65535)")
    parser.add_argument("-l", "--length", type=int, default=128,
                        help="Max banner length, in bytes (Default: 128)")
    parser.add_argument("-r", "--retry", action="store_true",
                        help='Work around "no route to host" errors')
    return parser


def main(argv=None):
    # 1. CLI Argument Parsing
    args = build_parser().parse_args(argv)
    setup_logging()
    ui = ScannerUI()

    try:
        # 2. Validate with Pydantic
        config = ScanConfig(
            target=args.target,
            ports=args.ports,
            parallelism=args.parallel,
            timeout=args.timeout,
            banner_length=args.length,
            show_failures=args.failures,
            retry_no_route=args.retry,
        )

        # 3. Build the shuffled port list
        context = ScanContext(config.target)
        ports = build_port_list(config.ports)

        # 4. Initialize & Run
        ui.display_start(config.target, len(ports), config.parallelism)
        scanner = PortScanner(config, ports, context=context)
        summary = scanner.run()
        ui.display_results(summary)

    except (ValidationError, PortSpecError) as e:
        ui.console.print(f"[bold red]Configuration Error:[/bold red] {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        ui.console.print("\n[yellow]Scan interrupted by user.[/yellow]")
        sys.exit(130)
    except Exception as e:
        # EntropyError, thread start failures
        ui.console.print(f"\n[bold red]Fatal Error:[/bold red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
