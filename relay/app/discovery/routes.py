"""
Discovery Routes
================

Plain HTTP endpoint clients call to learn the relay's LAN address before
opening the WebSocket. Unrelated to session state.

Endpoints:
----------
- GET /ip: {"ip": "<address>"} with Access-Control-Allow-Origin: *
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

discovery_router = APIRouter()


@discovery_router.get("/ip")
async def get_ip(request: Request) -> JSONResponse:
    """
    Report the address this relay advertises.

    Cross-origin access is always allowed here, independent of the CORS
    policy applied to the rest of the service.
    """
    return JSONResponse(
        content={"ip": request.app.state.session.advertised_ip},
        headers={"Access-Control-Allow-Origin": "*"}
    )
