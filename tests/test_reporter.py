"""Tests for sync result formatting and the logging sink."""

import logging
import time

import pytest

from gmx_mirror.sync.models import Direction, PathKind, SyncResult
from gmx_mirror.sync.reporter import (
    LoggingSink,
    format_result,
    format_session_summary,
)


def make_result(**overrides) -> SyncResult:
    values = dict(
        name="Enemy",
        direction=Direction.NATIVE_TO_MIRROR,
        kind=PathKind.NATIVE_OBJECT,
        success=True,
        timestamp=time.mktime((2024, 5, 1, 14, 3, 9, 0, 0, -1)),
    )
    values.update(overrides)
    return SyncResult(**values)


class TestFormatResult:
    def test_object_translation(self):
        assert format_result(make_result()) == "[14:03:09] native -> mirror: translated Enemy"

    def test_script_copy(self):
        result = make_result(
            name="scr_move",
            direction=Direction.MIRROR_TO_NATIVE,
            kind=PathKind.MIRROR_SCRIPT,
        )
        assert format_result(result) == "[14:03:09] mirror -> native: copied scr_move"

    def test_failure(self):
        result = make_result(
            direction=Direction.MIRROR_TO_NATIVE,
            kind=PathKind.MIRROR_OBJECT,
            success=False,
            error="line 4: unknown section [evnt]",
        )
        assert format_result(result) == (
            "[14:03:09] mirror -> native: FAILED Enemy: line 4: unknown section [evnt]"
        )

    def test_failure_without_message(self):
        assert format_result(make_result(success=False)).endswith("FAILED Enemy: unknown error")


class TestSessionSummary:
    def test_empty(self):
        assert format_session_summary({}) == "0 native -> mirror, 0 mirror -> native, 0 failed"

    def test_counts(self):
        tally = {"native -> mirror": 3, "mirror -> native": 2, "failed": 1}
        assert format_session_summary(tally) == "3 native -> mirror, 2 mirror -> native, 1 failed"


class TestLoggingSink:
    @pytest.fixture
    def sink(self):
        return LoggingSink(logging.getLogger("test.reporter"))

    def test_success_logged_at_info(self, sink, caplog):
        with caplog.at_level(logging.INFO, logger="test.reporter"):
            sink.report(make_result())
        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert record.getMessage().endswith("translated Enemy")

    def test_failure_logged_at_error(self, sink, caplog):
        with caplog.at_level(logging.INFO, logger="test.reporter"):
            sink.report(make_result(success=False, error="bad"))
        assert caplog.records[-1].levelno == logging.ERROR

    def test_tally_and_last(self, sink):
        assert sink.last is None
        sink.report(make_result())
        sink.report(make_result(direction=Direction.MIRROR_TO_NATIVE))
        sink.report(make_result())
        failed = make_result(success=False, error="x")
        sink.report(failed)

        assert sink.snapshot() == {"native -> mirror": 2, "mirror -> native": 1, "failed": 1}
        assert sink.last == failed

    def test_snapshot_is_a_copy(self, sink):
        sink.report(make_result())
        snap = sink.snapshot()
        snap["failed"] = 99
        assert "failed" not in sink.snapshot()
