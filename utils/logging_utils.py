from typing import Any


PROVIDER_ID_PREFIXES = ("acct_", "tr_", "po_", "evt_")


def mask_value(value: Any) -> Any:
    """Mask emails and payment provider identifiers before they reach log output."""
    if not isinstance(value, str):
        return value
    if "@" in value:
        name, _, domain = value.partition("@")
        return (name[:2] + "***@" + domain) if name else "***@" + domain
    for prefix in PROVIDER_ID_PREFIXES:
        if value.startswith(prefix) and len(value) > len(prefix) + 4:
            return f"{prefix}***{value[-4:]}"
    if len(value) > 12:
        return value[:4] + "..." + value[-4:]
    return "***"
