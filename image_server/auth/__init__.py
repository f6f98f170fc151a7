# image_server/auth/__init__.py
from .dependencies import GATE_HEADERS, apply_gate_headers, passed_gate, require_token, token_matches

__all__ = [
    "GATE_HEADERS",
    "apply_gate_headers",
    "passed_gate",
    "require_token",
    "token_matches",
]
