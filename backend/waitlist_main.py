import os

from dotenv import load_dotenv

# Load .env before the app reads settings
load_dotenv()

from inkmity.core.observability import setup_logging  # noqa: E402
from inkmity.waitlist.app import app  # noqa: E402

setup_logging()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "inkmity.waitlist.app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8001")),
    )
