from __future__ import annotations

import os

import uvicorn

from mindcare.analysis import is_demo_mode
from mindcare.utils.config import get_settings
from mindcare.utils.logger import get_logger, setup_logging


def main() -> None:
    settings = get_settings()
    setup_logging(settings)
    if is_demo_mode(settings):
        get_logger(__name__).warning(
            "demo_mode", msg="GEMINI_API_KEY not configured - using the local demo analysis provider"
        )

    port = int(os.environ.get("PORT", 5000))
    host = os.environ.get("HOST", "127.0.0.1")

    uvicorn.run(
        "mindcare.api.webapp:create_app",
        factory=True,
        host=host,
        port=port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
