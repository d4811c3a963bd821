# API Module - local REST surface for the vault

from .main import app, start_api_server

__all__ = ["app", "start_api_server"]
