import hashlib

from fastapi import Request

SESSION_HEADER = "x-session-token"


def resolve_identity(req: Request) -> str:
    """
    Precedence:
    1) session token header (hashed, never stored raw)
    2) socket peer address
    3) X-Real-IP, then the first address in X-Forwarded-For, only without a peer
    """
    token = (req.headers.get(SESSION_HEADER) or "").strip()
    if token:
        digest = hashlib.sha256(token.encode("utf-8")).hexdigest()[:32]
        return f"session:{digest}"

    client = getattr(req, "client", None)
    ip = getattr(client, "host", None) if client else None
    if not ip:
        ip = (req.headers.get("x-real-ip") or "").strip()
    if not ip:
        forwarded = req.headers.get("x-forwarded-for", "")
        ip = forwarded.split(",")[0].strip() if forwarded else ""
    return f"ip:{ip or 'unknown'}"
