# Main Entry Point
#
# Runs the local vault API server. `--status` prints whether a master
# password has been set up and exits.

import argparse
import sys

from . import __version__
from .core import EventSeverity, EventType, get_audit_logger


def main():
    """Main entry point for credvault."""
    parser = argparse.ArgumentParser(
        description="credvault - local master-password vault API"
    )

    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="API host (default: 127.0.0.1)"
    )

    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="API port (default: 8000)"
    )

    parser.add_argument(
        "--status",
        action="store_true",
        help="Print master password setup state and exit"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"credvault v{__version__}"
    )

    args = parser.parse_args()

    if args.status:
        from .context import VaultContext

        ctx = VaultContext()
        print(f"Master password set up: {'yes' if ctx.is_setup() else 'no'}")
        return

    from .api.main import start_api_server

    print(f"Starting credvault API on {args.host}:{args.port} (Ctrl+C to stop)")
    try:
        start_api_server(host=args.host, port=args.port)
    except KeyboardInterrupt:
        print("\nShutting down...")
    except Exception as e:
        print(f"\nError: {str(e)}")
        get_audit_logger().log_event(
            event_type=EventType.SYSTEM_STOP,
            severity=EventSeverity.CRITICAL,
            message=f"credvault API crashed: {str(e)}"
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
