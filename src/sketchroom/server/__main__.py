from __future__ import annotations

import argparse
import logging

import uvicorn

from .config import get_settings

logger = logging.getLogger("sketchroom")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    settings = get_settings()
    ap = argparse.ArgumentParser(description="Run the sketchroom board server.")
    ap.add_argument("--host", default=settings.host)
    ap.add_argument("--port", type=int, default=settings.port)
    ap.add_argument("--log-level", default=settings.log_level)
    args = ap.parse_args()

    configure_logging(args.log_level)
    logger.info(
        "server is running on %s:%d (history=%s)", args.host, args.port, settings.history_policy
    )
    uvicorn.run(
        "sketchroom.server.app:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
