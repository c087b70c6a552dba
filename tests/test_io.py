import pandas as pd
import pytest

from wrangler import io
from wrangler.errors import LoadError


@pytest.mark.parametrize("text, expected", [
    ("a,b,c\n1,2,3\n4,5,6\n", ","),
    ("a;b;c\n1;2;3\n4;5;6\n", ";"),
    ("a\tb\n1\t2\n3\t4\n", "\t"),
    ("a|b|c\n1|2|3\n", "|"),
    ("a;b,c\n1;2,3\n4;5,6\n", ","),
    ("only one line", ","),
    ("single\ncolumn\nfile\n", ","),
])
def test_detect_separator(tmp_path, text, expected):
    path = tmp_path / "sample.txt"
    path.write_text(text, encoding="utf-8")
    assert io.detect_separator(str(path)) == expected


def test_detect_separator_prefers_consistent_counts(tmp_path):
    # commas appear in free text, semicolons split every line evenly
    path = tmp_path / "notes.csv"
    path.write_text("id;note\n1;a, b, c\n2;plain\n3;x, y\n", encoding="utf-8")
    assert io.detect_separator(str(path)) == ";"


def test_load_csv(csv_path, sales_df):
    df, ctx = io.load_file(csv_path)
    pd.testing.assert_frame_equal(df, sales_df)
    assert ctx.ext == "csv"
    assert ctx.separator == ","


def test_load_semicolon_cp1251(tmp_path):
    path = tmp_path / "legacy.csv"
    path.write_bytes("имя;значение\nАня;1\nБорис;2\n".encode("cp1251"))
    df, ctx = io.load_file(str(path))
    assert ctx.separator == ";"
    assert list(df.columns) == ["имя", "значение"]
    assert df["значение"].tolist() == [1, 2]


def test_load_sanitises_headers(tmp_path):
    path = tmp_path / "blank.csv"
    path.write_text(",b,b\n1,2,3\n", encoding="utf-8")
    df, _ = io.load_file(str(path))
    assert list(df.columns) == ["column_1", "b", "b.1"]


def test_parquet_round_trip(tmp_path, sales_df):
    path = str(tmp_path / "sales.parquet")
    assert io.export_parquet(sales_df, path) == path
    df, ctx = io.load_file(path)
    pd.testing.assert_frame_equal(df, sales_df)
    assert ctx.ext == "parquet"


def test_excel_round_trip(tmp_path, sales_df):
    path = str(tmp_path / "sales.xlsx")
    io.export_excel(sales_df, path)
    assert io.get_sheet_names(path) == ["Sheet1"]
    df, ctx = io.load_file(path)
    assert ctx.sheet_name is None
    assert df.shape == sales_df.shape
    assert df["region"].tolist() == sales_df["region"].tolist()
    assert df["q1"].isna().tolist() == sales_df["q1"].isna().tolist()


def test_excel_named_sheet(tmp_path, sales_df):
    path = str(tmp_path / "book.xlsx")
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        sales_df.to_excel(writer, sheet_name="first", index=False)
        sales_df.head(1).to_excel(writer, sheet_name="second", index=False)
    df, ctx = io.load_file(path, "second")
    assert len(df) == 1
    assert ctx.sheet_name == "second"
    df, _ = io.load_file(path)
    assert len(df) == 4


def test_missing_and_unsupported(tmp_path):
    with pytest.raises(LoadError, match="File not found"):
        io.load_file(str(tmp_path / "nope.csv"))
    path = tmp_path / "data.json"
    path.write_text("{}", encoding="utf-8")
    with pytest.raises(LoadError, match="Unsupported file type"):
        io.load_file(str(path))


def test_broken_workbook(tmp_path):
    path = tmp_path / "broken.xlsx"
    path.write_bytes(b"not a zip")
    with pytest.raises(LoadError):
        io.get_sheet_names(str(path))


def test_export_csv(tmp_path, sales_df):
    path = str(tmp_path / "out.csv")
    io.EXPORTERS["csv"](sales_df, path)
    pd.testing.assert_frame_equal(pd.read_csv(path), sales_df)
