"""Run the API with uvicorn: `python -m travelstory`."""

import uvicorn

from travelstory.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "travelstory.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
