import io
import json
import logging

import pytest

from trustlend.logging_config import (
    AuditLogger, StructuredFormatter, configure_logging, get_request_id, set_request_id,
)


@pytest.fixture
def audit_stream():
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter(environment="test"))
    logger = logging.getLogger("trustlend.audit.test")
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    yield AuditLogger("trustlend.audit.test"), stream
    logger.removeHandler(handler)
    set_request_id("")


def _lines(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines()]


def test_loan_transition_fields(audit_stream):
    audit, stream = audit_stream
    set_request_id("req-9")
    audit.loan_transition("LoanFunded", 3, lender="0x" + "1e" * 20)

    [entry] = _lines(stream)
    assert entry["audit"] == "LOAN_TRANSITION"
    assert entry["loan_id"] == 3
    assert entry["lender"] == "0x" + "1e" * 20
    assert entry["request_id"] == "req-9"
    assert entry["env"] == "test"
    assert entry["level"] == "INFO"

def test_security_event_severity(audit_stream):
    audit, stream = audit_stream
    audit.security_event("reentrant_call", severity="high", operation="repay_loan")

    [entry] = _lines(stream)
    assert entry["level"] == "ERROR"
    assert entry["security_event"] == "reentrant_call"

def test_below_level_is_dropped(audit_stream):
    audit, stream = audit_stream
    logging.getLogger("trustlend.audit.test").setLevel(logging.ERROR)
    audit.claim_rejected("0x" + "b0" * 20, "0x00", "NoSignatures")
    assert stream.getvalue() == ""

def test_generated_request_id():
    generated = set_request_id()
    assert generated and get_request_id() == generated
    set_request_id("")

def test_configure_logging_plain(tmp_path):
    root = logging.getLogger()
    saved = (root.level, list(root.handlers))
    log_file = tmp_path / "trustlend.log"
    try:
        configure_logging(level="debug", json_format=False, log_file=str(log_file))
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2
        logging.getLogger("trustlend.test").warning("plain line")
        for handler in root.handlers:
            handler.flush()
        assert "plain line" in log_file.read_text()
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        root.setLevel(saved[0])
        for handler in saved[1]:
            root.addHandler(handler)
