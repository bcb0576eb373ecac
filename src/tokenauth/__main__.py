"""Run the API with uvicorn: ``python -m tokenauth``."""

import logging
import sys

import uvicorn

from .config import settings


def main() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s  %(levelname)-8s  %(name)s - %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger(__name__).info(
        "starting %s on http://%s:%s", settings.api_title, settings.host, settings.port
    )
    uvicorn.run("tokenauth.api:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
