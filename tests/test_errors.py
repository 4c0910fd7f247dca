import pytest

from connector_sdk.errors import (
    ConfigurationError,
    ErrorCode,
    InvalidDate,
    MalformedConfig,
    QError,
    get_error_code_type,
    parse_error_code,
)


@pytest.mark.parametrize(
    "value, expected",
    [(1070, 1070), (2010.0, 2010), ("1080", 1080), (" 2000 ", 2000), ("abc", None), (True, None), (None, None)],
)
def test_parse_error_code(value, expected):
    assert parse_error_code(value) == expected


def test_error_code_types():
    assert get_error_code_type(ErrorCode.INVALID_DATE) == "DEF"
    assert get_error_code_type(ErrorCode.SERVICE_UNAVAILABLE) == "TMP"
    assert get_error_code_type(4242) == ""


def test_qerror_labels():
    assert QError(code=1010).error_message() == "Invalid Request"
    assert QError(code=0).error_message() == ""
    assert QError(code=4242).error_message() == "unknown error"


def test_qerror_is_temporary():
    assert QError(code=ErrorCode.TIMEOUT).is_temporary
    assert not QError(code=ErrorCode.NOT_FOUND).is_temporary


def test_qerror_to_dict_omits_empty_details():
    assert QError(code=1040).to_dict() == {"code": 1040, "message": "Not Found", "error": ""}
    assert QError(code=1040, message="campaign 12", err="404").to_dict() == {
        "code": 1040,
        "message": "Not Found",
        "details": "campaign 12",
        "error": "404",
    }


def test_qerror_str():
    assert str(QError(code=1000)) == "code: 1000, message: Auth not valid"
    assert str(QError(code=1000, err="token expired")) == (
        "code: 1000, message: Auth not valid, cause: token expired"
    )


def test_connector_error_message_includes_fix():
    error = ConfigurationError("Config file not found", fix="Pass --config")

    assert str(error) == "Config file not found (how to fix: Pass --config)"
    assert str(MalformedConfig("bad")) == "bad"


def test_to_qerror_uses_the_cause():
    try:
        try:
            raise ValueError("month must be in 1..12")
        except ValueError as e:
            raise InvalidDate("Invalid start date: 2024-13-01") from e
    except InvalidDate as error:
        qerror = error.to_qerror()

    assert qerror.code == ErrorCode.INVALID_DATE
    assert qerror.message == "Invalid start date: 2024-13-01"
    assert qerror.err == "month must be in 1..12"
