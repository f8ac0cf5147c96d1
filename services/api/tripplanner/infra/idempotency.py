"""Idempotency-Key support for trip write endpoints.

Flow for a request carrying the header:
1. precheck: replay a stored response, reject a reused key with a
   different body (409), reject while the first attempt is in flight
   (409), or claim the key with a short "processing" lock.
2. store_result once the handler succeeded.
3. clear_key if the handler raised, so the client can retry.

Requests without the header skip all of this.
"""

import hashlib
import json
import logging
from datetime import datetime, timezone
from typing import Optional, Union

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from .redis_client import get_redis

logger = logging.getLogger("tripplanner.idempotency")

DONE_TTL_SEC = 60 * 60 * 24
PROCESSING_TTL_SEC = 60

IdempotencyClaim = tuple[str, str]


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _hash_request(method: str, path: str, body_bytes: bytes) -> str:
    h = hashlib.sha256()
    for part in (method.encode("utf-8"), path.encode("utf-8"), body_bytes or b""):
        h.update(part)
        h.update(b"|")
    return h.hexdigest()


def idempotency_redis_key(trip_id: str, route_key: str, idem_key: str) -> str:
    return f"tripplanner:idemp:{trip_id}:{route_key}:{idem_key}"


async def idempotency_precheck(
    request: Request, *, trip_id: str, route_key: str
) -> Union[None, IdempotencyClaim, JSONResponse]:
    """None: no header, proceed. Tuple: claimed, proceed and store. JSONResponse: replay."""
    idem_key = request.headers.get("Idempotency-Key")
    if not idem_key:
        return None

    body_bytes = await request.body()
    req_hash = _hash_request(request.method, request.url.path, body_bytes)
    rkey = idempotency_redis_key(trip_id, route_key, idem_key)
    r = await get_redis()

    raw = await r.get(rkey)
    if raw:
        data = json.loads(raw)
        if data.get("request_hash") != req_hash:
            raise HTTPException(status_code=409, detail="Idempotency-Key reused with different request payload")
        if data.get("state") == "done":
            logger.info(f"Replaying stored response for {route_key} key={idem_key}")
            return JSONResponse(content=data.get("body"), status_code=int(data.get("status", 200)))
        raise HTTPException(status_code=409, detail="Request with this Idempotency-Key is still processing. Retry shortly.")

    processing = {
        "state": "processing",
        "status": None,
        "body": None,
        "created_at": _iso_now(),
        "completed_at": None,
        "request_hash": req_hash,
    }
    ok = await r.set(rkey, json.dumps(processing), ex=PROCESSING_TTL_SEC, nx=True)
    if not ok:
        raise HTTPException(status_code=409, detail="Request with this Idempotency-Key is still processing. Retry shortly.")

    return (rkey, req_hash)


async def idempotency_store_result(claim: Optional[IdempotencyClaim], *, status: int, body: dict):
    if claim is None:
        return
    redis_key, req_hash = claim
    r = await get_redis()
    payload = {
        "state": "done",
        "status": int(status),
        "body": body,
        "completed_at": _iso_now(),
        "request_hash": req_hash,
    }
    await r.set(redis_key, json.dumps(payload), ex=DONE_TTL_SEC)


async def idempotency_clear_key(claim: Optional[IdempotencyClaim]):
    if claim is None:
        return
    try:
        r = await get_redis()
        await r.delete(claim[0])
    except RedisError as e:
        logger.warning(f"Failed to clear idempotency key {claim[0]}: {e}")
