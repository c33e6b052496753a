"""HTTP surface - FastAPI app factory and routers."""

from kb_chat.server.app import create_app, run

__all__ = ["create_app", "run"]
