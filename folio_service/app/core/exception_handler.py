import logging

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from .exceptions import AssistantError, BillingError
from shared.helpers.json_response_helper import failure_payload
from shared.utils.app_status_code import AppStatusCode

logger = logging.getLogger(__name__)


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(BillingError)
    async def billing_exception_handler(request: Request, exc: BillingError):
        if exc.http_status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            content=failure_payload(exc.message, exc.status_code),
            status_code=exc.http_status
        )

    @app.exception_handler(AssistantError)
    async def assistant_exception_handler(request: Request, exc: AssistantError):
        logger.warning("Assistant call failed: %s", exc.message)
        return JSONResponse(
            content=failure_payload(exc.message, exc.status_code),
            status_code=exc.http_status
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        # error_response() already puts the failure envelope into detail
        if isinstance(exc.detail, dict) and "status_code" in exc.detail:
            content = exc.detail
        else:
            content = failure_payload(str(exc.detail), str(exc.status_code))
        return JSONResponse(content=content, status_code=exc.status_code or 400, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        messages = []
        for error in exc.errors():
            field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            messages.append(f"{field}: {error.get('msg')}" if field else error.get("msg"))
        return JSONResponse(
            content=failure_payload("; ".join(messages) or "Invalid input", AppStatusCode.INVALID_INPUT),
            status_code=422
        )

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            content=failure_payload("Something went wrong. Please try again.", AppStatusCode.OPERATION_FAILED),
            status_code=500
        )
