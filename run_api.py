"""Run FastAPI server."""
import uvicorn

from familytree.api.main import app
from familytree.config import settings
from familytree.logging_config import configure_logging

if __name__ == "__main__":
    configure_logging()
    print(f"Starting FastAPI on http://localhost:{settings.api.port}")
    uvicorn.run(app, host=settings.api.host, port=settings.api.port)
