"""Server entrypoint: ``python -m twitchdash.main`` or ``uvicorn twitchdash.main:app``"""

import uvicorn

from twitchdash.app import create_app
from twitchdash.core.config import get_settings

app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
