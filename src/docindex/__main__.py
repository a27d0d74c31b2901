"""docindex entry point."""

import asyncio
import sys


async def _run_once(command: str, args: list[str]) -> str:
    from docindex import server

    server._init_state()
    try:
        if command == "docs":
            return await server.docs(args[0])
        package = args[0]
        version = args[1] if len(args) >= 2 else None
        path = args[2] if len(args) >= 3 else "/"
        return await server.package_index(package, version, path)
    finally:
        await server._close_state()


def _cli() -> None:
    """CLI dispatcher: server (default), docs <url>, or index <package> [version] [path]."""
    if len(sys.argv) >= 3 and sys.argv[1] in ("docs", "index"):
        result = asyncio.run(_run_once(sys.argv[1], sys.argv[2:]))
        print(result)
        if result.startswith("Error"):
            sys.exit(1)
    elif len(sys.argv) >= 2 and sys.argv[1] in ("docs", "index"):
        print(f"Usage: docindex {sys.argv[1]} <{'url' if sys.argv[1] == 'docs' else 'package'}>")
        sys.exit(2)
    else:
        from docindex.server import main

        main()


if __name__ == "__main__":
    _cli()
