"""EduAssess assessment API.

Loads environment variables from a local .env file so that database and AI
provider settings can be configured without exporting them by hand.
"""

from pathlib import Path

from dotenv import load_dotenv


def _load_local_env():
    # Try backend/.env first, then project root .env
    pkg_dir = Path(__file__).resolve().parent
    candidates = [
        pkg_dir.parent / ".env",
        pkg_dir.parent.parent / ".env",
    ]
    for p in candidates:
        if p.exists():
            load_dotenv(dotenv_path=p, override=False)


_load_local_env()
