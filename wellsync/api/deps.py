"""FastAPI dependencies: phone services from app state, paired-node check for the data layer."""

import hmac
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from wellsync.services.data_layer_client import NODE_HEADER, TOKEN_HEADER
from wellsync.services.phone import PhoneServices


def get_services(request: Request) -> PhoneServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Service is starting")
    return services


async def require_paired_node(request: Request) -> str:
    """Return the calling node id; 401 unless the pairing token matches."""
    node_id = (request.headers.get(NODE_HEADER) or "").strip()
    token = request.headers.get(TOKEN_HEADER) or ""
    if not node_id:
        raise HTTPException(status_code=401, detail="Missing node id")
    expected = request.app.state.config.pairing_token
    if not hmac.compare_digest(token.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Invalid pairing token")
    return node_id


Services = Annotated[PhoneServices, Depends(get_services)]
PairedNode = Annotated[str, Depends(require_paired_node)]
