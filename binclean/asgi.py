"""
ASGI entrypoint: expose `app` for process managers / deployments.

- En production, un process manager (ex: gunicorn -k uvicorn.workers.UvicornWorker) importe `binclean.asgi:app`.
- En local: `python -m binclean` (PORT, UVICORN_RELOAD, LOG_LEVEL).
- Toute la configuration de FastAPI (routes, middlewares, sécurité...) est centralisée
  dans binclean.app_setup.factory, ce fichier ne fait qu’exposer l’instance `app`.
"""

from binclean.app import app
