"""askme entry point."""

import asyncio
import logging
import sys

from dotenv import find_dotenv, load_dotenv

from .config import settings_from_env


def main() -> None:
    """Main entry point: ``askme [serve|chat]``."""
    load_dotenv(find_dotenv(usecwd=True))
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = settings_from_env()

    command = sys.argv[1] if len(sys.argv) > 1 else "serve"

    if command == "chat":
        from .cli import run_cli

        sys.exit(asyncio.run(run_cli(settings)))

    if command != "serve":
        print(f"Unknown command: {command}. Use 'serve' or 'chat'.")
        sys.exit(2)

    import uvicorn

    from .server import create_app

    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
