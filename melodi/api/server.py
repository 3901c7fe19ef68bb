from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, HTTPException
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request

from melodi.api.middleware import NormalizeRequestMiddleware
from melodi.api.models import HealthOut, NormalizeOut
from melodi.core.exceptions import ContractViolation, MalformedInput
from melodi.core.normalization import NormalizerOptions, normalize_document, to_plain
from melodi.utils.env import env_int, env_positive_int

log = logging.getLogger("melodi.api")

DEFAULT_MAX_DEPTH: int = 256
DEFAULT_MAX_BODY_BYTES: int = 5 * 1024 * 1024


@dataclass(frozen=True, slots=True)
class ServiceConfig:
    """Configuration for the API service.

    Security notes:
    - max_body_bytes caps the size of documents accepted for normalization.
    - max_depth bounds recursion on externally supplied XML. The service
      always runs with a finite bound.

    """

    max_depth: int = DEFAULT_MAX_DEPTH
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES


def create_app(*, max_depth: Optional[int] = None) -> FastAPI:
    """Create the FastAPI app.

    max_depth overrides MELODI_MAX_DEPTH when given; without either the
    service uses DEFAULT_MAX_DEPTH.
    """

    if max_depth is None:
        max_depth = env_positive_int("MELODI_MAX_DEPTH") or DEFAULT_MAX_DEPTH
    cfg = ServiceConfig(
        max_depth=max_depth,
        max_body_bytes=env_int("MELODI_MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES),
    )
    options = NormalizerOptions(max_depth=cfg.max_depth)

    # Logging: safe defaults (no request bodies), can be configured by host app.
    log.setLevel(os.environ.get("MELODI_LOG_LEVEL", "INFO").upper())

    app = FastAPI(title="Melodi normalizer API", version="0.1")
    app.state.cfg = cfg

    # Request correlation, early size check and access logs.
    app.add_middleware(NormalizeRequestMiddleware, max_body_bytes=cfg.max_body_bytes)

    @app.get("/health", response_model=HealthOut)
    def health() -> HealthOut:
        return HealthOut(ok=True, max_depth=cfg.max_depth, max_body_bytes=cfg.max_body_bytes)

    @app.post("/normalize", response_model=NormalizeOut)
    async def normalize_endpoint(request: Request) -> NormalizeOut:
        """Normalize the raw XML request body.

        Parsing runs in the threadpool so large documents do not block the
        event loop.

        Errors:
        - 413 if the body exceeds max_body_bytes
        - 422 if the document is malformed or nested too deeply
        - 500 on an internal contract violation

        """

        body = await request.body()
        if len(body) > cfg.max_body_bytes:
            request.state.outcome = "too_large"
            raise HTTPException(status_code=413, detail="document_too_large")

        try:
            res = await run_in_threadpool(normalize_document, body, options)
        except MalformedInput as e:
            request.state.outcome = "rejected"
            log.info("normalize_rejected", extra={"reason": str(e)})
            raise HTTPException(status_code=422, detail=str(e)) from e
        except ContractViolation as e:
            request.state.outcome = "error"
            log.error("normalize_contract_violation", extra={"reason": str(e)})
            raise HTTPException(status_code=500, detail="internal_error") from e

        request.state.outcome = "ok"
        request.state.root_tag = res.root_tag
        return NormalizeOut(root=res.root_tag, value=to_plain(res.value))

    return app
