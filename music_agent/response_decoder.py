"""Response decoding for the Spotify MCP client.

The MCP server may answer a POST either with a plain JSON document or with
an event-stream frame (`data: <json>` lines) carrying the same JSON-RPC
envelope. decode_response() accepts both and always yields a
JsonRpcEnvelope or raises UnparseableResponse.
"""
import json
from typing import Any, Optional, Union
import logging

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import UnparseableResponse

logger = logging.getLogger(__name__)

SSE_DATA_PREFIX = "data: "
SSE_DONE_SENTINEL = "[DONE]"


class JsonRpcErrorObject(BaseModel):
    code: Optional[int] = None
    message: str = ""
    data: Any = None


class JsonRpcEnvelope(BaseModel):
    """A JSON-RPC 2.0 request, notification or response."""
    model_config = ConfigDict(extra="allow")

    jsonrpc: str = "2.0"
    method: Optional[str] = None
    params: Any = None
    id: Union[int, str, None] = None
    result: Any = None
    error: Optional[JsonRpcErrorObject] = None

    @property
    def has_result(self) -> bool:
        """True when the message carried a `result` member, even a null one."""
        return "result" in self.model_fields_set

    @property
    def is_error(self) -> bool:
        return self.error is not None


def extract_sse_payload(text: str) -> str:
    """Concatenate the payload of every `data: ` line, skipping [DONE]."""
    chunks = []
    for line in text.split("\n"):
        if not line.startswith(SSE_DATA_PREFIX):
            continue
        data = line[len(SSE_DATA_PREFIX):].strip()
        if data and data != SSE_DONE_SENTINEL:
            chunks.append(data)
    return "".join(chunks)


def _to_envelope(document: Any, body: str) -> JsonRpcEnvelope:
    if not isinstance(document, dict):
        raise UnparseableResponse(body)
    try:
        return JsonRpcEnvelope.model_validate(document)
    except ValidationError:
        raise UnparseableResponse(body)


def decode_response(body: Union[str, bytes]) -> JsonRpcEnvelope:
    """Decode a response body into a JSON-RPC envelope.

    A direct JSON parse of the whole body is tried first; only if that fails
    is the body treated as an event stream.

    Raises:
        UnparseableResponse: If neither path yields a JSON object
    """
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")

    try:
        document = json.loads(body)
    except (ValueError, RecursionError):
        pass
    else:
        return _to_envelope(document, body)

    logger.debug("[ResponseDecoder] Parsing as SSE response...")
    payload = extract_sse_payload(body)
    if not payload:
        raise UnparseableResponse(body)

    try:
        document = json.loads(payload)
    except (ValueError, RecursionError):
        logger.warning(f"[ResponseDecoder] Failed to parse SSE JSON: {payload[:200]}")
        raise UnparseableResponse(body)

    return _to_envelope(document, body)
