"""
Serverless function host - ``/functions/v1/<name>``.

Serves the same handlers the functions client dispatches to locally, so
one deployment can act as the functions host for another.
"""

import asyncio
import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from aidatlas.services.functions_client import LOCAL_HANDLERS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["Functions"])


@router.post("/{name}")
async def invoke_function(name: str, request: Request):
    """
    Invoke a function by name.

    Args:
        name: get-mapbox-token | classify-request

    Returns:
        The handler's JSON payload with the handler's status code
    """
    handler = LOCAL_HANDLERS.get(name)
    if handler is None:
        return JSONResponse(status_code=404, content={"error": f"Unknown function: {name}"})

    raw = await request.body()
    try:
        body = json.loads(raw) if raw else None
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "Request body must be JSON"})
    if body is not None and not isinstance(body, dict):
        return JSONResponse(status_code=400, content={"error": "Request body must be a JSON object"})

    loop = asyncio.get_running_loop()
    status_code, payload = await loop.run_in_executor(None, handler, body)
    logger.info(f"Function {name} -> {status_code}")
    return JSONResponse(status_code=status_code, content=payload)
