"""
Logging & Path Utility Tests
"""
import logging

import pytest

from review_pipeline.utils.logging_config import RunIdFilter, bind_run_id, reset_run_id
from review_pipeline.utils.path_utils import normalize_report_path, strip_file_scheme


def _record():
    return logging.LogRecord("review_pipeline.test", logging.INFO, __file__, 1, "msg", None, None)


def test_run_id_filter_uses_bound_id():
    token = bind_run_id("abc-123")
    try:
        record = _record()
        assert RunIdFilter().filter(record) is True
        assert record.run_id == "abc-123"
    finally:
        reset_run_id(token)

    record = _record()
    RunIdFilter().filter(record)
    assert record.run_id == "-"


@pytest.mark.parametrize("raw,expected", [
    ("file:///x.cs", "x.cs"),
    ("file:///home/u/src/x.cs", "home/u/src/x.cs"),
    ("file://src/App.cs", "src/App.cs"),
    ("file:src/My%20File.cs", "src/My File.cs"),
    ("src\\Services\\Foo.cs", "src/Services/Foo.cs"),
    ("plain/path.cs", "plain/path.cs"),
])
def test_normalize_report_path(raw, expected):
    assert normalize_report_path(raw) == expected


def test_non_file_uri_untouched():
    assert strip_file_scheme("https://example.com/a.cs") == "https://example.com/a.cs"
