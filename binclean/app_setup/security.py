from fastapi import FastAPI

from binclean.config import Settings

# Origines Stripe nécessaires à Stripe.js / Checkout
STRIPE_SOURCES = ["https://js.stripe.com", "https://checkout.stripe.com"]
STRIPE_CONNECT = ["https://api.stripe.com"]

def register_security_middleware(app: FastAPI, settings: Settings) -> None:
    @app.middleware("http")
    async def security_headers(request, call_next):
        response = await call_next(request)

        # En-têtes de sécurité
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        response.headers.setdefault("Permissions-Policy", "geolocation=(self), microphone=(), camera=()")
        if settings.cookie_secure:
            response.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains; preload")

        # CSP
        swagger_cdns = ["https://cdn.jsdelivr.net"]
        csp_connect = ["'self'"] + STRIPE_CONNECT + swagger_cdns
        if settings.supabase_url:
            csp_connect.append(settings.supabase_url)

        csp = (
            "default-src 'self'; "
            "base-uri 'self'; object-src 'none'; frame-ancestors 'none'; "
            "img-src 'self' data: https://fastapi.tiangolo.com; "
            f"style-src 'self' 'unsafe-inline' {' '.join(swagger_cdns)}; "
            f"script-src 'self' 'unsafe-inline' {' '.join(STRIPE_SOURCES + swagger_cdns)}; "
            f"frame-src {' '.join(STRIPE_SOURCES)}; "
            f"connect-src {' '.join(csp_connect)}"
        )
        response.headers["Content-Security-Policy"] = csp

        return response
