"""Run the site: ``python -m simplebiz`` or ``simplebiz``."""

import argparse

import uvicorn
from dotenv import load_dotenv

from simplebiz.app import create_app
from simplebiz.config import Settings
from simplebiz.log import setup_logging


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="simplebiz", description=__doc__)
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=3000)
    parser.add_argument("--env-file", default=".env", help="dotenv file to load")
    args = parser.parse_args(argv)

    load_dotenv(args.env_file)
    settings = Settings.from_env()
    logger = setup_logging(settings.log_level)
    logger.info("Serving %s against %s", settings.site_name, settings.api_url)

    uvicorn.run(create_app(settings), host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
