"""
Gestionnaires d’exceptions.
- HTTPException: corps JSON {"detail": ...} standard pour les clients API.
- RequestValidationError sur les routes de checkout: 422 avec la liste des champs en erreur,
  pour affichage en ligne dans le formulaire.
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_as_json(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error_as_json(request: Request, exc: RequestValidationError):
        fields = sorted({str(err.get("loc", ("",))[-1]) for err in exc.errors()})
        logger.info("Validation error path=%s fields=%s", request.url.path, fields)
        return JSONResponse(
            status_code=422,
            content={"error": "Please check the highlighted fields.", "fields": fields, "detail": jsonable_encoder(exc.errors())},
        )
