import uvicorn

from src.config import Settings
from src.logger import log_config, logger
from src.main import create_app


def main() -> None:
    """Parse settings from flags/environment and serve the app with uvicorn."""
    settings = Settings(_cli_parse_args=True, _cli_prog_name="geoip-service", _cli_implicit_flags=True)
    logger.info(f"Listening on {settings.listen}")
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=log_config,
    )


if __name__ == "__main__":
    main()
