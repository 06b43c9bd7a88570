"""Entry point for running the application with uvicorn."""

import uvicorn

from livestock_ops.config import configure_logging, get_settings


def main() -> None:
    """Run the application."""
    settings = get_settings()
    configure_logging()
    uvicorn.run(
        "livestock_ops.api.app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
