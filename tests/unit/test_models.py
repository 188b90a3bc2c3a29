"""Tests for data models."""

from wiredriver.models import (
    ChromeDriverConfig,
    Cookie,
    ElementReference,
    Envelope,
    ErrorDetail,
    FirefoxDriverConfig,
    Status,
)


def test_envelope_decoding() -> None:
    """Test envelope decoding from a raw response body."""
    envelope = Envelope.model_validate_json(
        b'{"sessionId": "abc", "status": 0, "value": {"browserName": "chrome"}}'
    )

    assert envelope.session_id_str == "abc"
    assert envelope.status == 0
    assert envelope.value == {"browserName": "chrome"}


def test_envelope_defaults() -> None:
    """Test an empty envelope has no session and a zero status."""
    envelope = Envelope.model_validate_json(b"{}")

    assert envelope.session_id_str == ""
    assert envelope.status == 0
    assert envelope.value is None


def test_error_detail_aliases() -> None:
    """Test error detail decoding with wire field names."""
    detail = ErrorDetail.model_validate(
        {
            "message": "no such element",
            "screen": "iVBORw0KGgo=",
            "class": "org.openqa.selenium.NoSuchElementException",
            "stackTrace": [
                {"fileName": "a.js", "className": "A", "methodName": "f", "lineNumber": 3}
            ],
        }
    )

    assert detail.message == "no such element"
    assert detail.class_name == "org.openqa.selenium.NoSuchElementException"
    assert detail.stack_trace[0].line_number == 3


def test_status_model() -> None:
    """Test server status decoding."""
    status = Status.model_validate(
        {"build": {"version": "2.9"}, "os": {"arch": "x86_64", "name": "Linux"}}
    )

    assert status.build.version == "2.9"
    assert status.os.name == "Linux"
    assert status.os.version == ""


def test_element_reference() -> None:
    """Test element reference decoding."""
    ref = ElementReference.model_validate({"ELEMENT": "0"})

    assert ref.element == "0"


def test_cookie_dump_excludes_unset() -> None:
    """Test unset cookie fields are not sent."""
    cookie = Cookie(name="token", value="x")

    assert cookie.model_dump(exclude_none=True) == {
        "name": "token",
        "value": "x",
        "secure": False,
    }


def test_chromedriver_config_defaults() -> None:
    """Test chromedriver config default values."""
    config = ChromeDriverConfig()

    assert config.port == 9515
    assert config.threads == 4
    assert config.log_path == "chromedriver.log"
    assert config.log_file is None
    assert config.start_timeout == 20.0


def test_firefox_config_defaults() -> None:
    """Test firefox config default values."""
    config = FirefoxDriverConfig()

    assert config.port == 0
    assert config.lock_port_timeout == 60.0
    assert config.prefs is None
    assert config.delete_profile_on_close is True
