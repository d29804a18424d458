"""Global exception handlers mapping domain exceptions to HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from lmn_fulfillment.exceptions import (
    DispatchError,
    GenerationError,
    LMNError,
    ValidationError,
)


def register_error_handlers(app: FastAPI) -> None:
    """Register exception-to-HTTP-status mappings."""

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"error": str(exc), "type": "validation_error", "fields": exc.fields},
        )

    @app.exception_handler(GenerationError)
    async def handle_generation_error(request: Request, exc: GenerationError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"error": str(exc), "type": "generation_error"})

    @app.exception_handler(DispatchError)
    async def handle_dispatch_error(request: Request, exc: DispatchError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"error": str(exc), "type": "dispatch_error"})

    @app.exception_handler(LMNError)
    async def handle_generic_error(request: Request, exc: LMNError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"error": str(exc), "type": "lmn_error"})
