"""Run the API with uvicorn: ``python -m learnpath`` or the ``learnpath`` script."""
import uvicorn

from learnpath.core.settings import settings


def main() -> None:
    uvicorn.run(
        "learnpath.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
