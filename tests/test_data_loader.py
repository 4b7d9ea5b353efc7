"""Tests for phagemap/data/loader.py - spreadsheet parsing."""
from __future__ import annotations

import pandas as pd
import pytest

from phagemap.data import dataset_from_frame, load_dataset, parse_rows
from phagemap.errors import DatasetError


HEADER = ["Name", "Info", "P1", "P2"]


class TestParseRows:

    @pytest.mark.unit
    def test_basic_layout(self):
        rows = [
            ["exported 2024-01-01"],
            HEADER,
            ["b1", "meta", 1, 0],
            ["b2", "meta", 0, 3],
        ]
        dataset = parse_rows(rows, source_name="s.xlsx")
        assert dataset.headers == ["P1", "P2"]
        assert dataset.leaf_names == ["b1", "b2"]
        assert dataset.get_leaf("b2").values == (0, 1)
        assert dataset.source_name == "s.xlsx"

    @pytest.mark.unit
    def test_non_numeric_and_blank_are_zero(self):
        rows = [[], HEADER, ["b1", None, "yes", None], ["b2", None, "2.5", " "]]
        dataset = parse_rows(rows)
        assert dataset.get_leaf("b1").values == (0, 0)
        assert dataset.get_leaf("b2").values == (1, 0)

    @pytest.mark.unit
    def test_rows_padded_and_truncated(self):
        rows = [[], HEADER, ["short", None, 1], ["long", None, 1, 1, 1, 1]]
        dataset = parse_rows(rows)
        assert dataset.get_leaf("short").values == (1, 0)
        assert dataset.get_leaf("long").values == (1, 1)

    @pytest.mark.unit
    def test_names_stripped_and_blank_rows_skipped(self):
        rows = [[], ["Name", "Info", " P1 ", ""], ["  b1 ", None, 1], [None, None, 1], ["", None, 1]]
        dataset = parse_rows(rows)
        assert dataset.headers == ["P1"]
        assert dataset.leaf_names == ["b1"]

    @pytest.mark.unit
    def test_duplicate_bacterium_keeps_first(self):
        rows = [[], HEADER, ["b1", None, 1, 0], ["b1", None, 0, 1]]
        dataset = parse_rows(rows)
        assert dataset.leaf_names == ["b1"]
        assert dataset.get_leaf("b1").values == (1, 0)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "rows, message",
        [
            ([[], HEADER], "at least 3 rows"),
            ([[], ["Name", "Info"], ["b1", None]], "at least 3 columns"),
            ([[], ["Name", "Info", None, " "], ["b1", None, 1]], "No phage names"),
            ([[], HEADER, [None, None, 1, 0]], "No bacteria data"),
        ],
    )
    def test_validation_errors(self, rows, message):
        with pytest.raises(DatasetError, match=message):
            parse_rows(rows)

    @pytest.mark.unit
    def test_interaction_matrix(self):
        rows = [[], HEADER, ["b1", None, 1, 0], ["b2", None, 1, 1]]
        matrix = parse_rows(rows).interaction_matrix()
        assert matrix.shape == (2, 2)
        assert matrix.sum() == 3


class TestDatasetFromFrame:

    @pytest.mark.unit
    def test_nan_cells_are_blank(self):
        frame = pd.DataFrame([
            ["meta", None, None, None],
            HEADER,
            ["b1", float("nan"), 1, float("nan")],
        ])
        dataset = dataset_from_frame(frame)
        assert dataset.get_leaf("b1").values == (1, 0)


class TestLoadDataset:

    @pytest.mark.integration
    def test_csv_with_uneven_rows(self, tmp_path):
        path = tmp_path / "phages.csv"
        path.write_text(
            "exported by lab\n"
            "Name,Info,P1,P2\n"
            "b1,x,1,0\n"
            "\n"
            "b2,y,abc,4\n"
        )
        dataset = load_dataset(path)
        assert dataset.source_name == "phages.csv"
        assert dataset.headers == ["P1", "P2"]
        assert dataset.leaf_names == ["b1", "b2"]
        assert dataset.get_leaf("b2").values == (0, 1)

    @pytest.mark.integration
    def test_tsv(self, tmp_path):
        path = tmp_path / "phages.tsv"
        path.write_text("meta\nName\tInfo\tP1\nb1\tx\t1\n")
        assert load_dataset(path).get_leaf("b1").values == (1,)

    @pytest.mark.integration
    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "phages.json"
        path.write_text("{}")
        with pytest.raises(DatasetError, match="Unsupported file type"):
            load_dataset(path)

    @pytest.mark.integration
    def test_missing_file(self, tmp_path):
        with pytest.raises(DatasetError, match="Failed to parse"):
            load_dataset(tmp_path / "absent.csv")
