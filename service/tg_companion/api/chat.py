from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from tg_companion.dependencies import get_backend
from tg_companion.logging_config import get_logger
from tg_companion.middleware.auth import verify_bearer_token
from tg_companion.schemas import ChatRequest, ChatResponse
from tg_companion.services.completion import BackendError, CompletionBackend

logger = get_logger("chat")

router = APIRouter(tags=["chat"])


async def parse_chat_request(request: Request) -> ChatRequest:
    """Decode the body as ChatRequest; 400 through the validation handler."""
    body = await request.body()
    try:
        return ChatRequest.model_validate_json(body)
    except ValidationError as e:
        raise RequestValidationError(
            [{**err, "loc": ("body", *err["loc"])} for err in e.errors(include_url=False)]
        )


# The body is read inside the handler so the bearer guard runs first
@router.post(
    "/chat",
    response_model=ChatResponse,
    dependencies=[Depends(verify_bearer_token)],
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": ChatRequest.model_json_schema()}},
        }
    },
)
async def chat(
    request: Request,
    backend: CompletionBackend = Depends(get_backend),
):
    """
    Send a prompt to the completion backend and return its reply.

    - 400 if the body is malformed or the prompt is empty or whitespace only
    - 502 if the backend fails
    """
    chat_request = await parse_chat_request(request)
    if not chat_request.prompt.strip():
        raise HTTPException(status_code=400, detail="Prompt cannot be empty")

    logger.debug(f"Chat prompt: {chat_request.prompt!r}")

    try:
        reply = await backend.complete(chat_request.prompt)
    except BackendError as e:
        logger.error(f"Error calling chat API: {e}")
        raise HTTPException(status_code=502, detail="Error calling chat API")

    return ChatResponse(reply=reply)
