"""Main entry point for serving the exhibit signboard page."""

import argparse
import logging
import os

import uvicorn

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    """Main function for the web server CLI."""
    parser = argparse.ArgumentParser(
        description="Serve the zoo exhibit signboard generator"
    )
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Interface to bind (use 0.0.0.0 in containers)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT", "8000")),
        help="Port to listen on (defaults to PORT or 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Reload on source changes (development only)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    log_level = "debug" if args.verbose else os.environ.get("LOG_LEVEL", "info").lower()
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        os.environ["LOG_LEVEL"] = "DEBUG"

    logger.info(f"Serving exhibit page on http://{args.host}:{args.port}")
    uvicorn.run(
        "src.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=log_level,
    )


if __name__ == "__main__":
    main()
