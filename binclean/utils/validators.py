import re

# Numéros australiens: +61 ou 0, suivi de 9 chiffres (0412345678, +61412345678, 0212345678...)
_AU_PHONE = re.compile(r"^(?:\+61|0)\d{9}$")
_PHONE_SEPARATORS = re.compile(r"[\s\-()]")

def validate_au_phone(v: str) -> str:
    cleaned = _PHONE_SEPARATORS.sub("", v or "")
    if not _AU_PHONE.match(cleaned):
        raise ValueError("Please enter a valid Australian phone number")
    return v.strip()

def validate_required_text(v: str) -> str:
    if not (v or "").strip():
        raise ValueError("This field is required")
    return v.strip()
