"""Run the service: ``python -m fleet_trips``."""

import uvicorn

from fleet_trips.Core.config import settings


def main() -> None:
    uvicorn.run(
        "fleet_trips.main:app",
        host=settings.HTTP_HOST,
        port=settings.HTTP_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
