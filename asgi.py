"""
asgi.py -- ASGI entry point for TaskList.

Run with:  uvicorn asgi:app --reload

Importing the app here keeps the server command stable if api/main.py is ever
split; deployment configs only ever reference asgi:app.
"""

from api.main import app

__all__ = ["app"]
