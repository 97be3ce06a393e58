"""
Natours Backend — Global Error Handler Tests
==============================================

What we test:
    ✅ normalize(): structured failures kept, HTTP errors mapped, raw defects wrapped
    ✅ VERBOSE: message, detail and stack for everything
    ✅ MINIMAL: operational messages shown, known defects translated,
                everything else replaced by the generic message
    ✅ Failure headers (Retry-After) reach the response
"""

import json
import logging

import jwt
import pytest
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import DataError, IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from natours.config import Verbosity
from natours.error_handler import GENERIC_MESSAGE, GlobalErrorHandler
from natours.exceptions import (
    ClientFault,
    NatoursError,
    NotFoundError,
    RateLimitExceededError,
    ServerFault,
)
from natours.schemas.tour import TourCreate


def body_of(response):
    return json.loads(response.body)


def raised(exc):
    """Return `exc` with a real traceback attached."""
    try:
        raise exc
    except BaseException as caught:
        return caught


# ══════════════════════════════════════════════════════════════════════════
# normalize
# ══════════════════════════════════════════════════════════════════════════

class TestNormalize:
    def test_structured_failure_is_kept(self):
        failure = NotFoundError("No tour")
        assert GlobalErrorHandler.normalize(failure) is failure

    def test_client_http_exception(self):
        failure = GlobalErrorHandler.normalize(StarletteHTTPException(405, "Method Not Allowed"))

        assert isinstance(failure, ClientFault)
        assert failure.status_code == 405
        assert failure.is_operational
        assert failure.status == "fail"

    def test_server_http_exception_is_operational(self):
        failure = GlobalErrorHandler.normalize(StarletteHTTPException(503, "Maintenance"))

        assert isinstance(failure, ServerFault)
        assert failure.is_operational
        assert failure.status == "error"

    def test_raw_defect_is_wrapped(self):
        defect = KeyError("missing")
        failure = GlobalErrorHandler.normalize(defect)

        assert isinstance(failure, ServerFault)
        assert failure.status_code == 500
        assert not failure.is_operational
        assert failure.cause is defect


# ══════════════════════════════════════════════════════════════════════════
# VERBOSE (development)
# ══════════════════════════════════════════════════════════════════════════

class TestVerbose:
    def setup_method(self):
        self.handler = GlobalErrorHandler(Verbosity.VERBOSE)

    def test_operational_failure_has_detail_and_stack(self):
        response = self.handler.render(raised(NotFoundError("No tour found with that ID")))
        body = body_of(response)

        assert response.status_code == 404
        assert body["status"] == "fail"
        assert body["message"] == "No tour found with that ID"
        assert body["error"]["name"] == "NotFoundError"
        assert body["error"]["is_operational"] is True
        assert "NotFoundError" in body["stack"]

    def test_defect_message_is_exposed(self):
        response = self.handler.render(raised(RuntimeError("db connection reset")))
        body = body_of(response)

        assert response.status_code == 500
        assert body["status"] == "error"
        assert body["message"] == "db connection reset"
        assert body["error"]["name"] == "RuntimeError"
        assert body["error"]["is_operational"] is False
        assert "db connection reset" in body["stack"]

    def test_known_defects_are_not_translated(self):
        response = self.handler.render(raised(jwt.ExpiredSignatureError("Signature has expired")))

        assert response.status_code == 500
        assert body_of(response)["error"]["name"] == "ExpiredSignatureError"

    def test_context_with_exception_values_serializes(self):
        failure = ServerFault("Upstream failed", cause=ValueError("bad"), context={"cause": ValueError("bad")})
        body = body_of(self.handler.render(failure))
        assert body["error"]["context"] == {"cause": "bad"}


# ══════════════════════════════════════════════════════════════════════════
# MINIMAL (production)
# ══════════════════════════════════════════════════════════════════════════

class TestMinimal:
    def setup_method(self):
        self.handler = GlobalErrorHandler(Verbosity.MINIMAL)

    def test_operational_failure_shows_message_only(self):
        response = self.handler.render(NotFoundError("Can't find /x on this server!"))

        assert response.status_code == 404
        assert body_of(response) == {"status": "fail", "message": "Can't find /x on this server!"}

    def test_operational_server_fault_keeps_message(self):
        response = self.handler.render(StarletteHTTPException(503, "Maintenance"))
        assert body_of(response) == {"status": "error", "message": "Maintenance"}

    def test_defect_is_hidden_and_logged(self, caplog):
        with caplog.at_level(logging.ERROR, logger="natours.error_handler"):
            response = self.handler.render(raised(RuntimeError("password=hunter2")))

        assert response.status_code == 500
        assert body_of(response) == {"status": "error", "message": GENERIC_MESSAGE}
        assert "hunter2" not in response.body.decode()
        assert any("ERROR 💥" in record.getMessage() for record in caplog.records)

    def test_non_operational_natours_error_is_hidden(self):
        response = self.handler.render(NatoursError("internal detail", status_code=500, is_operational=False))
        assert body_of(response)["message"] == GENERIC_MESSAGE

    def test_path_validation_error(self):
        exc = RequestValidationError(
            [
                {
                    "type": "uuid_parsing",
                    "loc": ("path", "tour_id"),
                    "msg": "Input should be a valid UUID",
                    "input": "abc",
                }
            ]
        )

        response = self.handler.render(exc)

        assert response.status_code == 400
        assert body_of(response) == {"status": "fail", "message": "Invalid tour_id: abc."}

    def test_body_validation_error(self):
        exc = RequestValidationError(
            [
                {"type": "missing", "loc": ("body", "name"), "msg": "Field required", "input": {}},
                {"type": "greater_than", "loc": ("body", "price"), "msg": "Input should be greater than 0", "input": -1},
            ]
        )

        body = body_of(self.handler.render(exc))

        assert body["message"] == (
            "Invalid input data. name: Field required. price: Input should be greater than 0"
        )

    def test_pydantic_validation_error(self):
        with pytest.raises(Exception) as info:
            TourCreate.model_validate({"name": "short"})

        response = self.handler.render(info.value)

        assert response.status_code == 400
        message = body_of(response)["message"]
        assert message.startswith("Invalid input data. ")
        assert "name" in message
        assert "duration" in message

    def test_data_error(self):
        exc = DataError("SELECT ...", {}, Exception('invalid input syntax for type uuid: "abc"'))

        response = self.handler.render(exc)

        assert response.status_code == 400
        assert body_of(response)["message"] == "Invalid uuid: abc."

    def test_integrity_error(self):
        orig = Exception(
            'duplicate key value violates unique constraint "tours_name_key"\n'
            "DETAIL:  Key (name)=(The Forest Hiker) already exists."
        )
        exc = IntegrityError("INSERT ...", {}, orig)

        response = self.handler.render(exc)

        assert response.status_code == 400
        assert body_of(response)["message"] == (
            "Duplicate field value: The Forest Hiker. Please use another value!"
        )

    def test_integrity_error_with_quoted_value(self):
        exc = IntegrityError("INSERT ...", {}, Exception('UNIQUE constraint failed: "The Sea Explorer"'))
        message = body_of(self.handler.render(exc))["message"]
        assert message == 'Duplicate field value: "The Sea Explorer". Please use another value!'

    def test_wrapped_defect_is_classified_by_cause(self):
        cause = DataError("SELECT ...", {}, Exception('invalid input syntax for type integer: "five"'))
        response = self.handler.render(ServerFault("query failed", cause=cause))

        assert response.status_code == 400
        assert body_of(response)["message"] == "Invalid integer: five."

    def test_expired_token(self):
        response = self.handler.render(jwt.ExpiredSignatureError("Signature has expired"))

        assert response.status_code == 401
        assert body_of(response) == {
            "status": "fail",
            "message": "Your token has expired! Please log in again.",
        }

    @pytest.mark.parametrize(
        "exc",
        [jwt.DecodeError("Not enough segments"), jwt.InvalidSignatureError("Signature verification failed")],
    )
    def test_invalid_token(self, exc):
        response = self.handler.render(exc)

        assert response.status_code == 401
        assert body_of(response)["message"] == "Invalid token. Please log in again!"

    def test_retry_after_header(self):
        response = self.handler.render(RateLimitExceededError("Slow down", retry_after=120))

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "120"
        assert body_of(response) == {"status": "fail", "message": "Slow down"}

    def test_custom_translator_list(self):
        handler = GlobalErrorHandler(
            Verbosity.MINIMAL,
            translators=[(ZeroDivisionError, lambda exc: ClientFault("Cannot divide by zero"))],
        )

        assert body_of(handler.render(ZeroDivisionError()))["message"] == "Cannot divide by zero"
        assert body_of(handler.render(jwt.DecodeError("x")))["message"] == GENERIC_MESSAGE
