"""Run the API server: ``python -m waitlist_api``."""

from __future__ import annotations

import uvicorn

from config.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "waitlist_api.api.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=settings.port,
        reload=settings.waitlist_env == "dev",
        log_config=None,
    )


if __name__ == "__main__":
    main()
