from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from binclean.config import Settings
from binclean.health.service import health_stripe_info, health_supabase_info
from binclean.utils.deps import get_settings
from binclean.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root():
    return {"ok": True}

@router.get("/supabase")
def health_supabase(settings: Settings = Depends(get_settings)):
    return JSONResponse(health_supabase_info(settings))

@router.get("/stripe")
def health_stripe(settings: Settings = Depends(get_settings)):
    return JSONResponse(health_stripe_info(settings))

@router.get("/rate-limit")
def health_rate_limit(request: Request):
    return JSONResponse(rate_limit_health_info(request))
