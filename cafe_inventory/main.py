"""
FastAPI Production Application

Main entry point for the cafe inventory API.
"""

from cafe_inventory.serving.api import create_api_app

app = create_api_app()
