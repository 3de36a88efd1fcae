import os

import uvicorn

from kaji.core.app_factory import create_app

app = create_app()


def run() -> None:
    """Serve the API with uvicorn on ``PORT`` (default 3001)."""
    uvicorn.run(
        "kaji.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3001")),
        log_config=None,
    )


if __name__ == "__main__":
    run()
