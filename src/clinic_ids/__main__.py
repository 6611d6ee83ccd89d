"""Run the clinic-ids gateway: python -m clinic_ids"""

import uvicorn

from clinic_ids.config import load_config

config = load_config()
uvicorn.run("clinic_ids.app:create_app", host=config.host, port=config.port, factory=True)
