import logging

from cardano_launcher.log import StdlibLogger, prepend_name, safe_log


def test_stdlib_logger_includes_payload(caplog):
    logger = StdlibLogger(logging.getLogger("cardano_launcher.test"))

    with caplog.at_level(logging.DEBUG, logger="cardano_launcher.test"):
        logger.info("Service.start: trying to start cat", {"cwd": None})
        logger.error("boom")

    assert caplog.records[0].getMessage() == "Service.start: trying to start cat {'cwd': None}"
    assert caplog.records[0].levelno == logging.INFO
    assert caplog.records[1].getMessage() == "boom"
    assert caplog.records[1].levelno == logging.ERROR


def test_prepend_name(mock_logger):
    logger = prepend_name(prepend_name(mock_logger, "launcher"), "node")

    logger.debug("started", {"pid": 1})

    assert mock_logger.logs[0].msg == "launcher: node: started"
    assert mock_logger.logs[0].param == {"pid": 1}


def test_safe_log_swallows_sink_failure():
    def broken(message, payload=None):
        raise OSError("stream closed")

    safe_log(broken, "message")


def test_safe_log_forwards(mock_logger):
    safe_log(mock_logger.info, "hello", {"a": 1})

    assert mock_logger.by_severity("info")[0].msg == "hello"
