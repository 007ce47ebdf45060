"""
Start the SignalPro API with uvicorn.

    python run_server.py

Reads backend/.env before settings are built.
"""
import os
import sys

here = os.path.dirname(os.path.abspath(__file__))
os.chdir(here)
sys.path.insert(0, here)

from dotenv import load_dotenv

load_dotenv(os.path.join(here, ".env"))

import uvicorn

from signalpro.core.config import get_settings
from signalpro.core.logging import configure_logging


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)

    print(f"SignalPro {settings.app_version} ({settings.environment})")
    print(f"Listening on http://{settings.host}:{settings.port}  docs at /docs")
    print("=" * 50)

    uvicorn.run(
        "signalpro.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
