# image_server/routers/token.py
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from image_server.core.config import settings
from image_server.core.errors import MethodNotAllowed

router = APIRouter(tags=["Token"])


@router.get("/token")
async def get_token():
    """Hand the shared secret to the bundled upload page."""
    return JSONResponse(content=settings.TOKEN)


@router.api_route("/token", methods=["POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def token_method_not_allowed():
    raise MethodNotAllowed("Method not allowed")
