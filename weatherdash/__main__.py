from __future__ import annotations

import uvicorn

from weatherdash.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "weatherdash.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.env == "dev",
    )


if __name__ == "__main__":
    main()
