"""
Natours Backend — Global Error Handler
========================================

What:  The single place where error responses are built.
How:   Every failure, whether returned by a pipeline stage, raised by a
       router or rejected by FastAPI's request validation, goes through
       GlobalErrorHandler.render():

       1. normalize   anything that is not a NatoursError becomes one
                      (raw defects → ServerFault, operational=False)
       2. mode branch VERBOSE:  keep the failure as is, expose detail + stack
                      MINIMAL:  translate known defects into operational
                                client faults; replace whatever is still
                                non-operational with a generic message
       3. emit        exactly one JSONResponse

Response Shape:
    MINIMAL:  {"status": "fail" | "error", "message": "..."}
    VERBOSE:  {"status": ..., "error": {...}, "message": "...", "stack": "..."}

Known defects (MINIMAL only):
    sqlalchemy DataError, path param parsing   → 400 "Invalid {field}: {value}."
    sqlalchemy IntegrityError                  → 400 "Duplicate field value: ..."
    pydantic / FastAPI validation errors       → 400 "Invalid input data. ..."
    jwt.ExpiredSignatureError                  → 401 "Your token has expired! ..."
    jwt.InvalidTokenError                      → 401 "Invalid token. ..."
"""

import logging
import re
import traceback
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

import jwt
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import DataError, IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from natours.config import Verbosity
from natours.exceptions import (
    AuthenticationError,
    ClientFault,
    NatoursError,
    ServerFault,
    ValidationError,
)
from natours.middleware.context import RequestContext

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Something went very wrong!"

Translator = Callable[[Any], NatoursError]


# ══════════════════════════════════════════════════════════════════════════
# Known-Defect Translators
# ══════════════════════════════════════════════════════════════════════════

def _describe_validation_error(error: Dict[str, Any]) -> str:
    location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    message = error.get("msg", "invalid value")
    if location:
        return f"{'.'.join(location)}: {message}"
    return message


def _invalid_input(errors: Sequence[Dict[str, Any]]) -> ValidationError:
    messages = [_describe_validation_error(error) for error in errors]
    return ValidationError(f"Invalid input data. {'. '.join(messages)}")


def translate_request_validation(exc: RequestValidationError) -> NatoursError:
    errors = list(exc.errors())
    for error in errors:
        location = error.get("loc", ())
        if location and location[0] == "path":
            field = location[-1]
            return ValidationError(f"Invalid {field}: {error.get('input')}.", field=str(field))
    return _invalid_input(errors)


def translate_pydantic_validation(exc: PydanticValidationError) -> NatoursError:
    return _invalid_input(exc.errors())


def translate_data_error(exc: DataError) -> NatoursError:
    text = str(getattr(exc, "orig", None) or exc)
    match = re.search(r'invalid input syntax for type (\w+): "(.*?)"', text)
    if match:
        return ValidationError(f"Invalid {match.group(1)}: {match.group(2)}.")
    return ValidationError("Invalid input value.")


def translate_integrity_error(exc: IntegrityError) -> NatoursError:
    text = str(getattr(exc, "orig", None) or exc)
    match = re.search(r"Key \((.+?)\)=\((.+?)\)", text)
    if match:
        value = match.group(2)
    else:
        quoted = re.search(r"([\"'])(?:\\?.)*?\1", text)
        value = quoted.group(0) if quoted else "unknown"
    return ValidationError(f"Duplicate field value: {value}. Please use another value!")


def translate_expired_token(exc: jwt.ExpiredSignatureError) -> NatoursError:
    return AuthenticationError("Your token has expired! Please log in again.")


def translate_invalid_token(exc: jwt.InvalidTokenError) -> NatoursError:
    return AuthenticationError("Invalid token. Please log in again!")


# Checked in order; subclasses must come before their base classes.
DEFAULT_TRANSLATORS: Tuple[Tuple[Type[BaseException], Translator], ...] = (
    (RequestValidationError, translate_request_validation),
    (PydanticValidationError, translate_pydantic_validation),
    (DataError, translate_data_error),
    (IntegrityError, translate_integrity_error),
    (jwt.ExpiredSignatureError, translate_expired_token),
    (jwt.InvalidTokenError, translate_invalid_token),
)


# ══════════════════════════════════════════════════════════════════════════
# Handler
# ══════════════════════════════════════════════════════════════════════════

class GlobalErrorHandler:
    """
    Turns any exception into the final error response.

    One instance is shared by the pipeline middleware and the FastAPI
    exception handlers (see natours.main.register_exception_handlers).
    """

    def __init__(
        self,
        verbosity: Verbosity = Verbosity.MINIMAL,
        translators: Sequence[Tuple[Type[BaseException], Translator]] = DEFAULT_TRANSLATORS,
    ):
        self.verbosity = verbosity
        self._translators: List[Tuple[Type[BaseException], Translator]] = list(translators)

    # ── Step 1: normalize ─────────────────────────────────────────────────

    @staticmethod
    def normalize(exc: BaseException) -> NatoursError:
        if isinstance(exc, NatoursError):
            return exc
        if isinstance(exc, StarletteHTTPException):
            message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
            if 400 <= exc.status_code < 500:
                return ClientFault(message=message, status_code=exc.status_code, headers=exc.headers)
            return ServerFault(message=message, cause=exc, status_code=exc.status_code, is_operational=True)
        return ServerFault(message=str(exc) or type(exc).__name__, cause=exc, is_operational=False)

    # ── Step 2 (production): classify ─────────────────────────────────────

    def classify(self, failure: NatoursError) -> NatoursError:
        original = failure.cause if failure.cause is not None else failure
        if not failure.is_operational:
            for exc_type, translate in self._translators:
                if isinstance(original, exc_type):
                    return translate(original)
        return failure

    # ── Step 3: emit ──────────────────────────────────────────────────────

    def render(self, exc: BaseException, ctx: Optional[RequestContext] = None) -> JSONResponse:
        failure = self.normalize(exc)
        original = failure.cause if failure.cause is not None else failure
        where = f"{ctx.method} {ctx.original_url}" if ctx is not None else "-"

        if self.verbosity is Verbosity.VERBOSE:
            self._log(failure, original, where)
            content = {
                "status": failure.status,
                "error": self._detail(failure, original),
                "message": failure.message,
                "stack": "".join(
                    traceback.format_exception(type(original), original, original.__traceback__)
                ),
            }
            return self._respond(failure, content)

        resolved = self.classify(failure)
        if not resolved.is_operational:
            logger.error(
                "ERROR 💥 %s on %s: %s",
                type(original).__name__,
                where,
                failure.message,
                exc_info=(type(original), original, original.__traceback__),
            )
            resolved = ServerFault(message=GENERIC_MESSAGE, is_operational=True)
        else:
            self._log(resolved, original, where)

        content = {"status": resolved.status, "message": resolved.message}
        return self._respond(resolved, content)

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _detail(failure: NatoursError, original: BaseException) -> Dict[str, Any]:
        return {
            "name": type(original).__name__,
            "status_code": failure.status_code,
            "status": failure.status,
            "is_operational": failure.is_operational,
            "message": str(original),
            "context": failure.context,
        }

    @staticmethod
    def _respond(failure: NatoursError, content: Dict[str, Any]) -> JSONResponse:
        return JSONResponse(
            status_code=failure.status_code,
            content=jsonable_encoder(content, custom_encoder={BaseException: str}),
            headers=failure.headers or None,
        )

    @staticmethod
    def _log(failure: NatoursError, original: BaseException, where: str) -> None:
        if failure.status_code >= 500:
            logger.error(
                "%s on %s: %s",
                type(original).__name__,
                where,
                failure.message,
                exc_info=(type(original), original, original.__traceback__),
            )
        else:
            logger.warning("%d on %s: %s", failure.status_code, where, failure.message)
