"""Run the Open When gateway: python -m openwhen"""

import logging

import uvicorn

from openwhen.config import load_config

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

config = load_config()
uvicorn.run("openwhen.app:create_app", host=config.host, port=config.port, factory=True)
