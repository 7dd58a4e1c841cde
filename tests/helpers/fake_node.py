"""Stand-in node process for launcher tests.

Rejects unknown flags with exit status 1 (after a short delay, like a real
node parsing its config). Otherwise it optionally creates a socket file and
runs until it is signalled.
"""

import argparse
import sys
import time
from pathlib import Path


def main() -> int:
    parser = argparse.ArgumentParser(prog="fake-node")
    parser.add_argument("--socket", default=None)
    parser.add_argument("--socket-delay", type=float, default=0.2)
    parser.add_argument("--exit-after", type=float, default=None)
    args, unknown = parser.parse_known_args()

    print("fake node starting", flush=True)
    if unknown:
        time.sleep(0.5)
        print(f"error: unexpected arguments {unknown}", file=sys.stderr, flush=True)
        return 1

    if args.socket:
        time.sleep(args.socket_delay)
        Path(args.socket).touch()

    if args.exit_after is not None:
        time.sleep(args.exit_after)
        return 3

    while True:
        time.sleep(3600)


if __name__ == "__main__":
    sys.exit(main())
