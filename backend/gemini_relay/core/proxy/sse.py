"""
SSE Framing

Re-frames decoded upstream chunks as Server-Sent Events.
"""
import json
import logging
from typing import Any, AsyncGenerator, AsyncIterator, Dict

from gemini_relay.core.errors import error_payload

logger = logging.getLogger(__name__)


def sse_frame(chunk: Dict[str, Any]) -> str:
    return f"data: {json.dumps(chunk, ensure_ascii=False)}\n\n"


async def relay_sse(
    chunks: AsyncGenerator[Dict[str, Any], None],
    model: str = "",
    log_bodies: bool = False,
) -> AsyncIterator[str]:
    """
    Emit one frame per upstream chunk, in order, pulling the next chunk only
    after the previous frame was handed on.

    A mid-stream upstream failure ends the stream with a single error frame.
    The upstream generator is closed however the stream ends, including a
    client disconnect.
    """
    count = 0
    try:
        async for chunk in chunks:
            if log_bodies:
                logger.debug(f"[Stream] {model} chunk {count}: {json.dumps(chunk)}")
            count += 1
            yield sse_frame(chunk)
    except Exception as e:
        logger.warning(f"[Stream] {model} failed after {count} chunks: {e}")
        yield sse_frame(error_payload(502, f"Upstream stream failed: {e}", "BAD_GATEWAY"))
        return
    finally:
        await chunks.aclose()
    logger.info(f"[Stream] {model} finished after {count} chunks")
