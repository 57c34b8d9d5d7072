"""
PII (Personally Identifiable Information) masking utilities for logs.
"""
from typing import Any


def mask_email(email: str) -> str:
    """Mask email address."""
    if "@" not in email:
        return email
    local, domain = email.split("@", 1)
    if len(local) <= 2:
        masked = "**"
    else:
        masked = local[:2] + "*" * (len(local) - 2)
    return f"{masked}@{domain}"


def mask_name(name: str) -> str:
    """Mask name."""
    if len(name) <= 2:
        return "**"
    return name[0] + "*" * (len(name) - 2) + name[-1]


def mask_text(value: str) -> str:
    """Mask free text, keeping only its length."""
    return "*" * len(value)


PII_FIELDS = {
    "email": mask_email,
    "customer_email": mask_email,
    "name": mask_name,
    "customer_name": mask_name,
    "line1": mask_text,
    "line2": mask_text,
    "postal_code": mask_text,
}


def mask_pii_in_dict(data: dict) -> dict:
    """Mask PII in dictionary recursively."""
    masked: dict[str, Any] = {}

    for key, value in data.items():
        if isinstance(value, dict):
            masked[key] = mask_pii_in_dict(value)
        elif isinstance(value, list):
            masked[key] = [mask_pii_in_dict(item) if isinstance(item, dict) else item for item in value]
        elif isinstance(value, str) and key.lower() in PII_FIELDS:
            masked[key] = PII_FIELDS[key.lower()](value)
        else:
            masked[key] = value

    return masked
