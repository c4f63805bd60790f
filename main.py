import argparse
import sys
import os

# Patch sys.path for local imports
ROOT_DIR = os.path.abspath(os.path.dirname(__file__))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from cli.cli_serve_command import handle_serve_command
from cli.cli_control_command import ctl


def handle_ctl_command(args) -> int:
    # click exits the process itself
    ctl.main(args=args.ctl_args, prog_name="delay-proxy ctl")
    return 0


# --- CLI Setup ---
def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="⏱️  Delay Proxy: latency and outage injection in front of one upstream",
        epilog="""Examples:
  UPSTREAM=http://localhost:3000 delay-proxy serve
  delay-proxy serve --upstream http://localhost:3000 --port 8080 --store-path ./state
  delay-proxy ctl delay set 1500
  delay-proxy ctl kill-switch enable --status 503 --body "down"

Environment: UPSTREAM (required), PORT, HOST, DELAY, STORE_PATH, LOG_LEVEL""",
        formatter_class=argparse.RawTextHelpFormatter
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="Available Commands",
        metavar="{serve, ctl}"
    )

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the proxy server")
    serve_parser.add_argument("--upstream", type=str, help="Upstream base URL (overrides UPSTREAM)")
    serve_parser.add_argument("--host", type=str, help="Bind address (overrides HOST)")
    serve_parser.add_argument("--port", type=int, help="Listening port (overrides PORT)")
    serve_parser.add_argument("--delay", type=int, help="Seed delay in ms when none is stored (overrides DELAY)")
    serve_parser.add_argument("--store-path", type=str, help="Directory for persisted state (overrides STORE_PATH)")
    serve_parser.add_argument("--verbose", "-v", action="store_true")
    serve_parser.set_defaults(func=handle_serve_command)

    # ctl
    ctl_parser = subparsers.add_parser("ctl", help="Manage a running proxy (delay, kill-switch)", add_help=False)
    ctl_parser.add_argument("ctl_args", nargs=argparse.REMAINDER)
    ctl_parser.set_defaults(func=handle_ctl_command)

    return parser


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    parser = create_parser()

    # argparse cannot pass leading options through REMAINDER, so ctl is routed by hand
    if argv and argv[0] == "ctl":
        args = argparse.Namespace(ctl_args=argv[1:], func=handle_ctl_command)
    else:
        args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
