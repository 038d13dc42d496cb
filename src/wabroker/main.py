"""Entry point for the wabroker session broker."""

from pathlib import Path

from wabroker.app import App
from wabroker.config import Config
from wabroker.logging import setup_logging
from wabroker.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    Path(config.auth_path).mkdir(parents=True, exist_ok=True)
    run_server(App(config), config)


if __name__ == "__main__":
    main()
