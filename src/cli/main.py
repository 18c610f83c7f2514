from __future__ import annotations

import uvicorn

from src import config


def main() -> None:
    uvicorn.run(
        "src.protocol.http.app:create_app",
        factory=True,
        host=config.HOST,
        port=config.PORT,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
