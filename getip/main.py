import uvicorn

from getip.core.app_factory import create_app
from getip.core.config import settings

app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(
        "getip.main:app",
        host=settings.app.host,
        port=settings.app.port,
        log_config=None,
        proxy_headers=True,
    )


if __name__ == "__main__":
    run()
