"""Tests for frontmatter parsing and header validation."""

import datetime

import pytest
import yaml

from blgo_pkg.errors import InvalidDate, MalformedDocument, MissingField, TypeMismatch
from blgo_pkg.frontmatter import PostHeader, parse_frontmatter, parse_post_header


class TestParseFrontmatter:
    """Test cases for splitting documents."""

    def test_splits_header_and_body(self):
        """Test the header mapping and the bytes after the closing delimiter."""
        mapping, body = parse_frontmatter("---\ntitle: Hello\n---\n# Hi\n")

        assert mapping == {'title': 'Hello'}
        assert body == "# Hi\n"

    def test_accepts_bytes(self):
        """Test that raw bytes are decoded as UTF-8."""
        mapping, body = parse_frontmatter("---\ntitle: Café\n---\nbody".encode('utf-8'))

        assert mapping['title'] == 'Café'
        assert body == "body"

    def test_skips_lines_before_opening_delimiter(self):
        """Test that content before the first delimiter is ignored."""
        mapping, body = parse_frontmatter("preamble\n---\ntitle: T\n---\nbody\n")

        assert mapping == {'title': 'T'}
        assert body == "body\n"

    def test_crlf_delimiters(self):
        """Test that Windows line endings are accepted on delimiter lines."""
        mapping, body = parse_frontmatter("---\r\ntitle: T\r\n---\r\nbody\r\n")

        assert mapping == {'title': 'T'}
        assert body == "body\r\n"

    def test_closing_delimiter_at_end_of_input(self):
        """Test a document that ends right after the closing delimiter."""
        mapping, body = parse_frontmatter("---\ntitle: T\n---")

        assert mapping == {'title': 'T'}
        assert body == ""

    def test_empty_header(self):
        """Test that an empty header yields an empty mapping."""
        mapping, body = parse_frontmatter("---\n---\nbody")

        assert mapping == {}
        assert body == "body"

    def test_body_keeps_later_delimiters(self):
        """Test that a horizontal rule in the body is not treated as a delimiter."""
        _, body = parse_frontmatter("---\ntitle: T\n---\nabove\n---\nbelow\n")

        assert body == "above\n---\nbelow\n"

    def test_indented_delimiter_is_not_a_delimiter(self):
        """Test that only a line that is exactly '---' counts."""
        with pytest.raises(MalformedDocument):
            parse_frontmatter("---\ntitle: T\n ---\nbody\n")

    def test_missing_closing_delimiter(self):
        """Test that an unclosed header never yields a partial parse."""
        with pytest.raises(MalformedDocument, match="closing"):
            parse_frontmatter("---\ntitle: Hello\n# Hi\n")

    def test_missing_opening_delimiter(self):
        """Test a document without any frontmatter."""
        with pytest.raises(MalformedDocument, match="opening"):
            parse_frontmatter("# Just markdown\n")

    def test_invalid_yaml(self):
        """Test that a header that is not YAML is malformed."""
        with pytest.raises(MalformedDocument, match="invalid YAML"):
            parse_frontmatter("---\ntitle: [unclosed\n---\nbody")

    def test_header_must_be_a_mapping(self):
        """Test that a YAML list header is rejected."""
        with pytest.raises(MalformedDocument, match="mapping"):
            parse_frontmatter("---\n- a\n- b\n---\nbody")

    def test_error_carries_source(self):
        """Test that errors name the offending file."""
        with pytest.raises(MalformedDocument) as excinfo:
            parse_frontmatter("no header", source='posts/bad.md')

        assert excinfo.value.source == 'posts/bad.md'
        assert 'posts/bad.md' in str(excinfo.value)

    def test_dates_stay_strings(self):
        """Test that YAML timestamps are not converted implicitly."""
        mapping, _ = parse_frontmatter("---\ndate: 2021-05-01\n---\n")

        assert mapping['date'] == '2021-05-01'

    def test_impossible_unquoted_date_is_not_a_yaml_error(self):
        """Test that an impossible date reaches validation as a string."""
        mapping, _ = parse_frontmatter("---\ndate: 2020-13-40\n---\n")

        assert mapping['date'] == '2020-13-40'


class TestParsePostHeader:
    """Test cases for typed post header validation."""

    def test_full_header(self):
        """Test a header with every recognized key."""
        header = parse_post_header({'title': 'Hello', 'date': '2021-05-01', 'draft': True})

        assert header == PostHeader(title='Hello', date=datetime.date(2021, 5, 1), draft=True)

    def test_defaults(self):
        """Test that date and draft are optional."""
        header = parse_post_header({'title': 'Hello'})

        assert header.date is None
        assert header.draft is False

    def test_unknown_keys_are_kept(self):
        """Test that extra keys are passed through for templates."""
        header = parse_post_header({'title': 'Hello', 'tags': ['a', 'b']})

        assert header.extra == {'tags': ['a', 'b']}

    def test_missing_title(self):
        """Test that a post without title always fails with MissingField."""
        with pytest.raises(MissingField) as excinfo:
            parse_post_header({'date': '2021-05-01'}, source='x.md')

        assert excinfo.value.field == 'title'

    def test_null_title(self):
        """Test that an empty title value counts as missing."""
        with pytest.raises(MissingField):
            parse_post_header({'title': None})

    @pytest.mark.parametrize('value', ['2020-13-40', '2021-5-1', '01/05/2021', 'yesterday'])
    def test_invalid_date(self, value):
        """Test that anything but a real YYYY-MM-DD date fails with InvalidDate."""
        with pytest.raises(InvalidDate):
            parse_post_header({'title': 'T', 'date': value})

    def test_draft_given_as_string(self):
        """Test that a quoted boolean is a type mismatch."""
        with pytest.raises(TypeMismatch) as excinfo:
            parse_post_header({'title': 'T', 'draft': 'yes'})

        assert excinfo.value.field == 'draft'

    def test_title_given_as_number(self):
        """Test that a non-string title is a type mismatch."""
        with pytest.raises(TypeMismatch):
            parse_post_header({'title': 2021})

    def test_date_given_as_number(self):
        """Test that a non-string date is a type mismatch."""
        with pytest.raises(TypeMismatch):
            parse_post_header({'title': 'T', 'date': 20210501})

    @pytest.mark.parametrize('document', [
        "---\ntitle: Hello\ndate: 2021-05-01\ndraft: false\n---\nbody",
        "---\ntitle: 'Colons: and \"quotes\"'\ndraft: true\n---\n",
        "---\ntitle: Untimed\n---\n",
    ])
    def test_reserializing_recognized_keys_is_lossless(self, document):
        """Test that dumping the recognized keys and parsing again gives the same header."""
        header = parse_post_header(parse_frontmatter(document)[0])

        dumped = {'title': header.title, 'draft': header.draft}
        if header.date is not None:
            dumped['date'] = header.date.isoformat()
        again = parse_post_header(parse_frontmatter(f"---\n{yaml.safe_dump(dumped)}---\n")[0])

        assert again == header
