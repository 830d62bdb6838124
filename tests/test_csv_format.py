from __future__ import annotations

import pytest

from catalog_sync.utils import csv_format as cf


def test_quoted_fields_keep_commas_and_doubled_quotes():
    text = "\n".join(
        [
            "category,subcategory,title,description,url,tags",
            'design,ux,"Tool, Pro","A ""great"" tool",https://x.test,ux,pro',
        ]
    )

    rows = list(cf.parse_rows(text))

    assert len(rows) == 1
    assert rows[0]["title"] == "Tool, Pro"
    assert rows[0]["description"] == 'A "great" tool'
    assert rows[0]["url"] == "https://x.test"


def test_quoted_tags_are_split_and_trimmed():
    text = 'category,subcategory,title,description,url,tags\nd,s,t,d,u,"ui,ux, prototyping"'

    (row,) = cf.parse_rows(text)

    assert row["tags"] == ["ui", "ux", "prototyping"]


def test_header_quotes_are_stripped():
    table = cf.parse_rows('"category","subcategory","title"\na,b,c')
    assert table.headers == ["category", "subcategory", "title"]
    assert list(table) == [{"category": "a", "subcategory": "b", "title": "c"}]


def test_missing_trailing_fields_become_empty_strings():
    (row,) = cf.parse_rows("category,subcategory,title,description,url,tags\ndesign,ux,Only")

    assert row["description"] == ""
    assert row["url"] == ""
    assert row["tags"] == []


def test_blank_lines_are_skipped_and_line_numbers_kept():
    text = "category,title\n\na,one\n   \nb,two\n"
    numbered = list(cf.parse_rows(text).iter_numbered())
    assert [line for line, _ in numbered] == [3, 5]
    assert [row["title"] for _, row in numbered] == ["one", "two"]


def test_rows_are_restartable():
    table = cf.parse_rows("category,title\na,one\nb,two")
    assert list(table) == list(table)


def test_unterminated_quote_flushes_partial_field():
    (row,) = cf.parse_rows('category,title,url\na,"broken, still going,https://x')
    assert row["category"] == "a"
    assert row["title"] == '"broken, still going,https://x'
    assert row["url"] == ""


def test_backslash_escaped_quote_does_not_toggle():
    assert cf.split_line(r'a,b\"c,d') == ["a", r'b\"c', "d"]


def test_no_tags_column_yields_no_tags_key():
    (row,) = cf.parse_rows("category,title\na,b")
    assert "tags" not in row


def test_windows_line_endings_and_bom_are_tolerated():
    (row,) = cf.parse_rows("\ufeffcategory,title\r\na,b\r\n")
    assert row == {"category": "a", "title": "b"}


@pytest.mark.parametrize("text", ["", "\n\n  \n"])
def test_empty_input_is_a_parse_error(text: str):
    with pytest.raises(cf.ParseError):
        cf.parse_rows(text)


def test_header_without_names_is_a_parse_error():
    with pytest.raises(cf.ParseError):
        cf.parse_rows(',,\na,b,c')


def test_render_csv_matches_export_layout():
    rows = cf.flatten_category(
        {
            "id": "design",
            "subcategories": [
                {
                    "id": "ux",
                    "items": [
                        {
                            "title": 'Say "hi"',
                            "description": "Desc, with comma",
                            "url": "https://hi.test",
                            "tags": ["a", "b"],
                        }
                    ],
                }
            ],
        }
    )

    assert cf.render_csv(rows).splitlines() == [
        "category,subcategory,title,description,url,tags",
        'design,ux,"Say ""hi""","Desc, with comma",https://hi.test,"a,b"',
    ]
