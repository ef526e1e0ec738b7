"""
Inspector CLI Tests
===================

Runs scripts/inspect_graph.py main() against a temporary CSV file.
"""

import importlib.util
import json
from pathlib import Path

import pytest

from fixtures import SAMPLE_ROWS, csv_text, make_row


SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "inspect_graph.py"


@pytest.fixture(scope="module")
def cli():
    spec = importlib.util.spec_from_file_location("inspect_graph", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "Data.csv"
    rows = SAMPLE_ROWS + [make_row("China", "Vestas", "", hs_code="8502")]
    path.write_text(csv_text(rows), encoding="utf-8")
    return path


class TestInspectCli:

    def test_summary_output(self, cli, data_file, capsys):
        assert cli.main([str(data_file), "--top", "2"]) == 0
        out = capsys.readouterr().out
        assert "7 seen, 6 used, 1 skipped" in out
        assert "1 row(s) skipped: missing 'Importer Name'" in out
        assert "HS 85xx\nType: product" in out

    def test_json_output(self, cli, data_file, capsys):
        assert cli.main([str(data_file), "--search", "vestas", "--json"]) == 0
        dto = json.loads(capsys.readouterr().out.split("\n", 1)[1])
        assert dto["focus_entity_id"] == "supplier-VESTAS"

    def test_empty_view(self, cli, data_file, capsys):
        assert cli.main([str(data_file), "--threshold", "99"]) == 0
        assert "No data to display" in capsys.readouterr().out

    def test_missing_source(self, cli, tmp_path, capsys):
        assert cli.main([str(tmp_path / "missing.csv")]) == 1
        assert "Load error" in capsys.readouterr().out

    def test_invalid_threshold(self, cli, data_file):
        assert cli.main([str(data_file), "--threshold", "0"]) == 2
