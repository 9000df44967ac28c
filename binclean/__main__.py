"""
Point d'entrée principal pour le backend FastAPI.

Usage:
    python -m binclean

Ce mode lance uvicorn directement et lit quelques variables d'environnement:
- PORT: port d'écoute (par défaut 8000)
- UVICORN_RELOAD: active le reload auto en dev ("1"/"true"/"yes")
- LOG_LEVEL: niveau de logs uvicorn (ex: "info", "debug")
"""
from typing import Any, Dict
import os

import uvicorn


def run_options() -> Dict[str, Any]:
    # Activer le reload uniquement si explicitement demandé (ex: en local)
    return {
        "host": "0.0.0.0",
        "port": int(os.environ.get("PORT", 8000)),
        "reload": os.environ.get("UVICORN_RELOAD", "").lower() in ("1", "true", "yes"),
        "log_level": os.environ.get("LOG_LEVEL", "info"),
        "proxy_headers": True,
    }


if __name__ == "__main__":
    uvicorn.run("binclean.asgi:app", **run_options())
