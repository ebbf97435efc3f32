"""
Served app: `uvicorn reviewfunnel.main:app`.
Settings come from the environment + config.yaml when this module is imported.
"""
from .api import create_app

app = create_app()
