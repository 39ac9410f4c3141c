"""
Run the knowledge assistant API server.

Usage:
    python -m knowledge_assistant
    PORT=8080 LOG_LEVEL=DEBUG knowledge-assistant
"""

import uvicorn

from knowledge_assistant.app import create_app
from knowledge_assistant.logging_config import configure_logging
from knowledge_assistant.settings import get_settings


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
