from uvicorn.config import LOGGING_CONFIG

from wabroker.web.runner import build_log_config


def test_log_config_formats():
    log_config = build_log_config(debug=False)

    assert log_config["formatters"]["access"]["fmt"].startswith("%(asctime)s")
    assert log_config["loggers"]["uvicorn"]["level"] == "INFO"


def test_debug_raises_uvicorn_level():
    assert build_log_config(debug=True)["loggers"]["uvicorn"]["level"] == "DEBUG"


def test_uvicorn_defaults_untouched():
    build_log_config(debug=True)

    assert LOGGING_CONFIG["loggers"]["uvicorn"]["level"] == "INFO"
    assert not LOGGING_CONFIG["formatters"]["access"]["fmt"].startswith("%(asctime)s")
