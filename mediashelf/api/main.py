"""
Main entry point for the API.
"""


from fastapi import FastAPI

from ..logger import config_logger
from .endpoints import router

config_logger("mediashelf")

app = FastAPI(title="mediashelf")
app.include_router(router)
