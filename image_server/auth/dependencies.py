# image_server/auth/dependencies.py
import secrets
from typing import Optional
from fastapi import Query, Request, Response

from image_server.core.config import settings
from image_server.core.errors import Unauthorized

# Headers every response behind the gate carries
GATE_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
}


def token_matches(candidate: Optional[str], token: str) -> bool:
    if candidate is None:
        return False
    return secrets.compare_digest(candidate.encode("utf-8"), token.encode("utf-8"))


async def require_token(request: Request, auth: Optional[str] = Query(None)) -> None:
    """
    Gate for /file: the caller's ``auth`` query parameter must equal the
    configured TOKEN. Runs before the handler, so a rejected request never
    has its body read.
    """
    if not token_matches(auth, settings.TOKEN):
        raise Unauthorized("Unauthorized")
    # error responses raised past this point still get the CORS headers
    request.state.gate_passed = True


def passed_gate(request: Request) -> bool:
    return getattr(request.state, "gate_passed", False)


def apply_gate_headers(response: Response, content_type: bool = True) -> Response:
    for name, value in GATE_HEADERS.items():
        if name == "Content-Type" and not content_type:
            continue
        response.headers[name] = value
    return response
