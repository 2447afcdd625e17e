"""
Tests for operation handlers — envelopes, validation and soft errors

Each handler runs against a mock CLI that exposes a real cache over a
recording log source, so tests can assert both the JSON envelope and
whether the cache was touched at all.
"""

from pathlib import Path
from unittest.mock import Mock

import pytest

from logscope.core.cancellation import CancellationToken
from logscope.handlers import (
    InfoHandler, TailHandler, ReadHandler, SearchHandler, FetchHandler, OPERATIONS,
    InfoRequest, TailRequest, ReadRequest, SearchRequest, FetchRequest,
)
from logscope.handlers.base import error_message
from logscope.errors import (
    CacheResolutionError, CancellationError, DeliveryIOError, ValidationError, LogSourceError,
)
from tests.factories import DEFAULT_KEY, numbered_log


class TestOperations:

    def test_operation_names(self):
        assert set(OPERATIONS) == {"get_logs_info", "tail_logs", "read_logs", "search_logs", "get_job_logs"}


class TestInfoHandler:

    def test_file_info(self, log_env, mock_cli):
        result = InfoHandler(mock_cli).run(log_env.request(InfoRequest))
        assert not result.is_error
        payload = result.json()
        assert payload["file_info"]["total_rows"] == 6
        assert payload["file_info"]["group_count"] == 2
        assert payload["file_info"]["first_timestamp"] == 1700000000000
        assert isinstance(payload["query_time_ms"], int)

    def test_sqlite_cache_file_reported(self, log_env):
        cache = log_env.sqlite_cache()
        cli = log_env.create_cli_mock(cache=cache)
        payload = InfoHandler(cli).run(log_env.request(InfoRequest)).json()
        assert payload["file_info"]["cache_file"] == str(cache.path_for(DEFAULT_KEY).absolute())


class TestTailHandler:

    def test_tail_terse(self, log_env, mock_cli):
        payload = TailHandler(mock_cli).run(log_env.request(TailRequest, tail=2)).json()
        assert [e["rn"] for e in payload["entries"]] == [4, 5]
        assert payload["entries"][0] == {"ts": 1700000000400, "g": "Test", "c": "ERROR: boom", "rn": 4}
        assert payload["total_rows"] == 6
        assert "query_time_ms" in payload

    def test_tail_raw(self, log_env, mock_cli):
        payload = TailHandler(mock_cli).run(log_env.request(TailRequest, tail=1, raw=True)).json()
        assert payload["entries"] == ["done"]

    def test_tail_text(self, log_env, mock_cli):
        payload = TailHandler(mock_cli).run(log_env.request(TailRequest, tail=1, format="text")).json()
        assert payload["entries"] == ["[2023-11-14 22:13:20.500] [Test] done"]

    def test_zero_tail_uses_default(self, log_factory):
        log_factory.add_log(numbered_log(30))
        cli = log_factory.create_cli_mock()
        payload = TailHandler(cli).run(log_factory.request(TailRequest, tail=0, raw=True)).json()
        assert len(payload["entries"]) == 10


class TestReadHandler:

    def test_page(self, log_env, mock_cli):
        payload = ReadHandler(mock_cli).run(log_env.request(ReadRequest, seek=2, limit=2, format="json")).json()
        assert [e["row_number"] for e in payload["entries"]] == [2, 3]
        assert payload["entries"][0]["content"] == "installed 3 packages"

    def test_preserve_ansi(self, log_env, mock_cli):
        request = log_env.request(ReadRequest, seek=2, limit=1, raw=True, preserve_ansi=True)
        payload = ReadHandler(mock_cli).run(request).json()
        assert payload["entries"] == ["\x1b[32minstalled\x1b[0m 3 packages"]

    def test_default_limit_is_100(self, log_factory):
        log_factory.add_log(numbered_log(250))
        cli = log_factory.create_cli_mock()
        payload = ReadHandler(cli).run(log_factory.request(ReadRequest)).json()
        assert len(payload["entries"]) == 100

    def test_seek_past_end(self, log_env, mock_cli):
        payload = ReadHandler(mock_cli).run(log_env.request(ReadRequest, seek=50)).json()
        assert payload["entries"] == []


class TestSearchHandler:

    def test_results(self, log_env, mock_cli):
        request = log_env.request(SearchRequest, pattern="error", context=1, raw=True)
        payload = SearchHandler(mock_cli).run(request).json()
        assert payload["match_count"] == 1
        assert payload["results"] == [{
            "row_number": 4,
            "before_context": ["+++ Test"],
            "match": "ERROR: boom",
            "after_context": ["done"],
        }]

    def test_no_matches(self, log_env, mock_cli):
        payload = SearchHandler(mock_cli).run(log_env.request(SearchRequest, pattern="nothing here")).json()
        assert payload["results"] == []
        assert payload["match_count"] == 0

    def test_scenario_e_invalid_pattern_never_touches_cache(self, log_env):
        """An invalid pattern is reported without any cache access."""
        cache = Mock()
        cli = log_env.create_cli_mock(cache=cache)
        result = SearchHandler(cli).run(log_env.request(SearchRequest, pattern="["))
        assert result.is_error
        assert result.text.startswith("invalid regex pattern")
        cache.resolve.assert_not_called()
        assert log_env.source.calls == []

    def test_reverse_limit(self, log_factory):
        log_factory.add_log(numbered_log(20))
        cli = log_factory.create_cli_mock()
        request = log_factory.request(SearchRequest, pattern="line", reverse=True, limit=2, raw=True)
        payload = SearchHandler(cli).run(request).json()
        assert [r["row_number"] for r in payload["results"]] == [19, 18]


class TestFetchHandler:

    def test_inline(self, log_env, mock_cli):
        payload = FetchHandler(mock_cli).run(log_env.request(FetchRequest)).json()
        assert payload["delivery_mode"] == "inline"
        assert payload["content"].split("\n") == [
            "--- Setup", "$ make deps", "installed 3 packages", "+++ Test", "ERROR: boom", "done",
        ]
        assert payload["job"] == DEFAULT_KEY.job
        assert payload["build"] == DEFAULT_KEY.build
        assert "query_time_ms" not in payload

    def test_file_mode_matches_inline_text(self, log_factory):
        """File contents equal what inline delivery would have returned."""
        log_factory.add_log(numbered_log(300))
        inline = FetchHandler(log_factory.create_cli_mock(threshold=0)).run(log_factory.request(FetchRequest)).json()

        payload = FetchHandler(log_factory.create_cli_mock(threshold=100)).run(log_factory.request(FetchRequest)).json()
        assert payload["delivery_mode"] == "file"
        assert payload["reason"] == "Log exceeded 100 token threshold, saved to file"
        assert Path(payload["file_path"]).read_text(encoding="utf-8") == inline["content"]
        assert payload["estimated_tokens"] == inline["estimated_tokens"]

    def test_delivery_failure_is_soft_error(self, log_env):
        cli = log_env.create_cli_mock()
        cli.delivery = Mock()
        cli.delivery.deliver.side_effect = DeliveryIOError("failed to write log file: disk full")
        result = FetchHandler(cli).run(log_env.request(FetchRequest))
        assert result.is_error
        assert result.text == "Failed to deliver job log: failed to write log file: disk full"


class TestValidation:
    """Bad requests fail before any cache access."""

    @pytest.mark.parametrize("field", ["org", "pipeline", "build", "job"])
    def test_missing_identity(self, log_env, field):
        cache = Mock()
        cli = log_env.create_cli_mock(cache=cache)
        request = log_env.request(TailRequest)
        setattr(request, field, "")
        result = TailHandler(cli).run(request)
        assert result.is_error
        assert result.text == f"{field} is required"
        cache.resolve.assert_not_called()

    @pytest.mark.parametrize("request_cls, fields", [
        (TailRequest, {"tail": -1}),
        (ReadRequest, {"seek": -2}),
        (ReadRequest, {"limit": -1}),
        (SearchRequest, {"pattern": "x", "limit": -5}),
        (SearchRequest, {"pattern": "x", "before_context": -1}),
    ])
    def test_negative_numbers(self, log_env, request_cls, fields):
        cli = log_env.create_cli_mock(cache=Mock())
        handler = {TailRequest: TailHandler, ReadRequest: ReadHandler, SearchRequest: SearchHandler}[request_cls]
        result = handler(cli).run(log_env.request(request_cls, **fields))
        assert result.is_error
        assert "must be >= 0" in result.text
        cli.cache.resolve.assert_not_called()

    def test_unknown_format(self, log_env):
        cli = log_env.create_cli_mock(cache=Mock())
        result = ReadHandler(cli).run(log_env.request(ReadRequest, format="xml"))
        assert result.is_error
        assert "Unknown format 'xml'" in result.text
        cli.cache.resolve.assert_not_called()


class TestSoftErrors:
    """Failures come back as text with is_error set."""

    def test_cache_failure(self, log_factory):
        log_factory.source.fail = "503 Service Unavailable"
        cli = log_factory.create_cli_mock()
        result = TailHandler(cli).run(log_factory.request(TailRequest))
        assert result.is_error
        assert result.text.startswith("Failed to create log reader: failed to download/cache logs")
        assert "503 Service Unavailable" in result.text

    def test_cancelled(self, log_env):
        token = CancellationToken()
        token.cancel("client disconnected")
        cli = log_env.create_cli_mock(token=token)
        result = ReadHandler(cli).run(log_env.request(ReadRequest))
        assert result.is_error
        assert result.text == "Query cancelled: client disconnected"

    def test_unexpected_errors_propagate(self, log_env):
        """Defects are not disguised as soft errors."""
        cache = Mock()
        cache.resolve.side_effect = RuntimeError("bug")
        cli = log_env.create_cli_mock(cache=cache)
        with pytest.raises(RuntimeError):
            InfoHandler(cli).run(log_env.request(InfoRequest))


class TestErrorMessage:

    @pytest.mark.parametrize("error, expected", [
        (ValidationError("job is required"), "job is required"),
        (CacheResolutionError("boom"), "Failed to create log reader: boom"),
        (DeliveryIOError("disk"), "Failed to deliver job log: disk"),
        (CancellationError("request timed out"), "Query cancelled: request timed out"),
        (LogSourceError("not found"), "not found"),
    ])
    def test_prefixes(self, error, expected):
        assert error_message(error) == expected
