"""CLI entry point: python -m clickerengine.mcp [SAVE_PATH]"""

from __future__ import annotations

import sys


def main() -> None:
    if len(sys.argv) > 2:
        print("Usage: python -m clickerengine.mcp [SAVE_PATH]", file=sys.stderr)
        print("Example: python -m clickerengine.mcp clicker_save.json", file=sys.stderr)
        sys.exit(1)

    from clickerengine.log import configure_logging
    from clickerengine.mcp.server import create_server
    from clickerengine.store import JsonFileStateStore, MemoryStateStore, StoreError

    # stdout carries the MCP stdio transport
    configure_logging(level="WARNING", stream=sys.stderr)

    if len(sys.argv) == 2:
        try:
            store = JsonFileStateStore.open(sys.argv[1])
        except StoreError as exc:
            print(f"error: {exc}", file=sys.stderr)
            sys.exit(1)
    else:
        store = MemoryStateStore()

    server = create_server(store)
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
