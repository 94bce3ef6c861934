import asyncio
import logging
from typing import Tuple

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..errors import MalformedRequest, TaskError
from ..models import Envelope, Task
from ..security import require_api_key
from ..services.task_executor import execute_task

logger = logging.getLogger(__name__)

router = APIRouter(tags=["task"], dependencies=[Depends(require_api_key)])

# Bytes read from a request body; anything past this is dropped.
MAX_BODY_BYTES = 1048576


async def read_body(request: Request, limit: int = MAX_BODY_BYTES) -> bytes:
    chunks = []
    size = 0
    async for chunk in request.stream():
        if size >= limit:
            break
        chunk = chunk[:limit - size]
        chunks.append(chunk)
        size += len(chunk)
    return b"".join(chunks)


def parse_task(body: bytes) -> Task:
    try:
        task = Task.model_validate_json(body)
    except ValidationError as e:
        detail = "; ".join(err["msg"] for err in e.errors(include_url=False))
        raise MalformedRequest(f"Unable to parse JSON request body: {detail}") from e
    logger.info("[TaskHandler] Task received: %s", task.id)
    return task


def process_task_request(body: bytes) -> Tuple[int, Envelope]:
    """Decode and run one task, returning the HTTP status and envelope to send."""
    try:
        result = execute_task(parse_task(body))
    except TaskError as e:
        logger.error("[TaskHandler] %s", e)
        return 500, Envelope.error(str(e))
    except Exception as e:
        logger.exception("[TaskHandler] unexpected failure while running task")
        return 500, Envelope.error(str(e))
    return 200, Envelope.success(result)


@router.post("/task")
async def handle_task(request: Request):
    body = await read_body(request)
    # Database work blocks; keep it off the event loop
    status_code, envelope = await asyncio.to_thread(process_task_request, body)
    return JSONResponse(status_code=status_code, content=envelope.model_dump())
