"""Lark/Feishu event subscription webhook endpoint.

One endpoint, routed by method. The URL verification challenge is answered
before anything else, including CORS and method checks.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

from fastapi import APIRouter, Request, Response
from loguru import logger

from oppbot.agent.dispatcher import EventDispatcher, answer_challenge
from oppbot.bus.events import OtherEvent, VerificationChallenge

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
    "Access-Control-Allow-Headers": (
        "Content-Type, Authorization, X-Lark-Signature, "
        "X-Lark-Request-Timestamp, X-Lark-Request-Nonce"
    ),
}

_METHODS = ["GET", "POST", "OPTIONS", "PUT", "PATCH", "DELETE", "HEAD"]


@router.api_route("/", methods=_METHODS)
@router.api_route("/api/webhook", methods=_METHODS)
async def lark_event(request: Request) -> Response:
    """Handle Lark event subscription callbacks."""
    dispatcher: EventDispatcher = request.app.state.dispatcher
    body = await request.body()

    # ── 1. URL verification challenge (fast path) ──
    event = dispatcher.decode(body) if body else None
    if isinstance(event, VerificationChallenge):
        logger.info(f"URL verification challenge: {event.challenge[:20]}...")
        return _json(200, answer_challenge(event), cors=False)

    # ── 2. Method routing ──
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    if request.method == "GET":
        return _json(200, {
            "status": "running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "message": "oppbot webhook is running",
        })
    if request.method != "POST":
        return _json(405, {"error": "Method not allowed"})

    # ── 3. Dispatch ──
    logger.info(f"Lark webhook: {len(body)} bytes")
    status, payload = await dispatcher.handle(event or OtherEvent(), raw=body)
    return _json(status, payload)


def _json(status: int, data: dict, cors: bool = True) -> Response:
    return Response(
        content=json.dumps(data, ensure_ascii=False),
        status_code=status,
        media_type="application/json; charset=utf-8",
        headers=CORS_HEADERS if cors else None,
    )
