"""Command line entry point: run a server or a client against an address."""

from __future__ import annotations

import asyncio
import sys

from .client import MtuNegotiationError, run_client
from .server import run_server

_PROG = "bedrock_raknet"


def main(argv=None) -> int:
    """Run "<address> <server|client>"; return the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 2:
        print(f"Usage: {_PROG} <address> <server|client>")
        return 1
    address, mode = args[0], args[1]
    print(f"Address: {address}")
    try:
        if mode == "server":
            print("Starting server")
            asyncio.run(run_server(address))
        else:
            print("Starting client")
            asyncio.run(run_client(address))
    except MtuNegotiationError as exc:
        print(exc)
        return 1
    except (ValueError, OSError, RuntimeError) as exc:
        print(f"Error: {exc}")
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())