"""Cutscene HTTP API - FastAPI service over the validate/compile/export pipeline"""
from .server import app

__all__ = ["app"]
