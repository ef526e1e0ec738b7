"""
Row Source Tests
================

CSV parsing plus file and HTTP sources. HTTP uses httpx.MockTransport,
so no network access is needed.
"""

import asyncio

import httpx
import pytest

from tradegraph.contracts.base import ErrorCode
from tradegraph.core.builder import FIELD_COUNTRY, FIELD_HS_CODE, FIELD_SUPPLIER
from tradegraph.ingestion import (
    FileRowSource, HttpRowSource, InMemoryRowSource, LoadStatus,
    SourceUnavailableError, parse_csv_text, source_for,
)
from tradegraph.engine import PipelineStatus, TradeGraphEngine
from fixtures import SAMPLE_ROWS, SPEC_EXAMPLE_ROWS, csv_text


class TestParseCsv:

    def test_headers_kept_verbatim(self):
        rows = parse_csv_text(csv_text(SPEC_EXAMPLE_ROWS))
        assert len(rows) == 2
        assert rows[0][FIELD_HS_CODE] == "850212"
        assert rows[1][FIELD_SUPPLIER] == "Suzlon"

    def test_blank_lines_skipped(self):
        text = "a,b\n1,2\n,\n\n3,4\n"
        assert parse_csv_text(text) == [{"a": "1", "b": "2"}, {"a": "3", "b": "4"}]

    def test_quoted_cells(self):
        rows = parse_csv_text('name,value\n"Acme, Inc.","1,000"\n')
        assert rows == [{"name": "Acme, Inc.", "value": "1,000"}]

    def test_custom_delimiter(self):
        assert parse_csv_text("a;b\n1;2\n", delimiter=";") == [{"a": "1", "b": "2"}]

    def test_byte_order_mark_dropped(self):
        assert parse_csv_text("\ufeffa,b\n1,2\n") == [{"a": "1", "b": "2"}]

    def test_empty_document_is_unavailable(self):
        with pytest.raises(SourceUnavailableError):
            parse_csv_text("")


class TestFileRowSource:

    def test_load(self, tmp_path):
        path = tmp_path / "Data.csv"
        path.write_text(csv_text(SPEC_EXAMPLE_ROWS), encoding="utf-8")
        result = FileRowSource(path).load()
        assert result.is_success
        assert result.row_count == 2
        assert result.source == str(path)

    def test_byte_order_mark_stripped(self, tmp_path):
        path = tmp_path / "bom.csv"
        path.write_bytes("\ufeffa,b\n1,2\n".encode("utf-8"))
        result = FileRowSource(path).load()
        assert result.rows == ({"a": "1", "b": "2"},)

    def test_missing_file_is_unavailable(self, tmp_path):
        result = FileRowSource(tmp_path / "missing.csv").load()
        assert result.status == LoadStatus.UNAVAILABLE
        assert result.rows == ()
        assert result.error.code == ErrorCode.SOURCE_UNAVAILABLE
        assert "Load error" in result.error.message


class TestHttpRowSource:

    URL = "https://data.example.org/Data.csv"

    def make_source(self, handler):
        return HttpRowSource(self.URL, transport=httpx.MockTransport(handler))

    def test_fetch(self):
        body = csv_text(SPEC_EXAMPLE_ROWS)
        seen = {}

        def handler(request):
            seen['agent'] = request.headers.get('user-agent')
            return httpx.Response(200, text=body)

        result = asyncio.run(self.make_source(handler).fetch())
        assert result.is_success
        assert result.row_count == 2
        assert seen['agent'] == "TradeGraph/1.0"

    def test_byte_order_mark_stripped(self):
        body = ("\ufeff" + csv_text(SAMPLE_ROWS)).encode("utf-8")
        source = self.make_source(lambda request: httpx.Response(200, content=body))
        result = asyncio.run(source.fetch())
        assert FIELD_COUNTRY in result.rows[0]
        engine = TradeGraphEngine()
        engine.load_source(source)
        assert engine.status == PipelineStatus.READY
        assert engine.view().report.rows_used == len(SAMPLE_ROWS)

    def test_undecodable_body_is_unavailable(self):
        body = b"a,b\n\xff\xfe,2\n"
        result = asyncio.run(self.make_source(lambda request: httpx.Response(200, content=body)).fetch())
        assert result.status == LoadStatus.UNAVAILABLE
        assert "Parse error" in result.error.message

    def test_http_error_status(self):
        result = asyncio.run(self.make_source(lambda request: httpx.Response(404)).fetch())
        assert not result.is_success
        assert "HTTP 404" in result.error.message

    def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        result = asyncio.run(self.make_source(handler).fetch())
        assert result.status == LoadStatus.UNAVAILABLE
        assert result.error.code == ErrorCode.SOURCE_UNAVAILABLE

    def test_synchronous_load(self):
        body = csv_text(SPEC_EXAMPLE_ROWS)
        result = self.make_source(lambda request: httpx.Response(200, text=body)).load()
        assert result.row_count == 2


class TestSourceSelection:

    def test_source_for(self, tmp_path):
        assert isinstance(source_for("https://example.org/a.csv"), HttpRowSource)
        assert isinstance(source_for(str(tmp_path / "a.csv")), FileRowSource)

    def test_in_memory(self):
        result = InMemoryRowSource(SPEC_EXAMPLE_ROWS).load()
        assert result.rows == tuple(SPEC_EXAMPLE_ROWS)
        assert result.source == "memory"
