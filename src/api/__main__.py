"""Entry point for running the API server: python -m api."""
import uvicorn

from core.config import Settings

if __name__ == "__main__":
    settings = Settings()
    uvicorn.run("api.main:create_app", factory=True, host="0.0.0.0", port=settings.port)  # noqa: S104
