#!/usr/bin/env python3
"""
Engagement Service server: entrypoint for `python -m engagement.server`.

For uvicorn use engagement.app:app.
"""

from .app import app

if __name__ == "__main__":
    import uvicorn

    from .config import get_config

    config = get_config()
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())
