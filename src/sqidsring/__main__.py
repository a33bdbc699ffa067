"""Run the token gateway: python -m sqidsring"""

import uvicorn

from sqidsring.config import load_config

config = load_config()
uvicorn.run("sqidsring.app:create_app", host=config.host, port=config.port, factory=True)
