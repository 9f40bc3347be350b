"""Unit tests for Link header parsing and construction."""

import pytest

from fcrepo_connector.exceptions import LinkParseError
from fcrepo_connector.utils.http.link import FcrepoLink, links_with_rel


def test_parse_uri_and_params():
    link = FcrepoLink.value_of(
        '<http://localhost/rest/a/fcr:metadata>; rel="describedby"; type="text/turtle"'
    )
    assert link.uri == "http://localhost/rest/a/fcr:metadata"
    assert link.rel == "describedby"
    assert link.type == "text/turtle"
    assert link.get_param("missing") is None


def test_parse_unquoted_param_value():
    link = FcrepoLink.value_of("<http://a/b>; rel=edit")
    assert link.rel == "edit"


def test_parse_uri_only():
    link = FcrepoLink.value_of("<http://a/b>")
    assert link.uri == "http://a/b"
    assert dict(link.params) == {}
    assert link.rel is None


def test_quoted_value_keeps_delimiters():
    link = FcrepoLink.value_of('<http://a/b>; title="one; two, three"; rel="x"')
    assert link.get_param("title") == "one; two, three"
    assert link.rel == "x"


def test_params_are_read_only():
    link = FcrepoLink.value_of('<http://a/b>; rel="x"')
    with pytest.raises(TypeError):
        link.params["rel"] = "y"


def test_builder_round_trip():
    link = (
        FcrepoLink.Builder()
        .uri("http://localhost:8080/rest/a")
        .rel("describedby")
        .type("text/turtle")
        .param("title", '"quoted"')
        .build()
    )
    parsed = FcrepoLink.value_of(str(link))
    assert parsed == link
    assert parsed.uri == "http://localhost:8080/rest/a"
    assert parsed.rel == "describedby"
    assert parsed.type == "text/turtle"
    assert parsed.get_param("title") == "quoted"


def test_render_quotes_every_value():
    link = FcrepoLink.value_of("<http://a/b>; rel=edit")
    assert str(link) == '<http://a/b>; rel="edit"'


def test_builder_requires_uri():
    with pytest.raises(LinkParseError):
        FcrepoLink.Builder().rel("x").build()


def test_equal_links_hash_equal():
    a = FcrepoLink.value_of('<http://a/b>; rel="x"')
    b = FcrepoLink.value_of('<http://a/b>;rel=x')
    assert a == b
    assert hash(a) == hash(b)


@pytest.mark.parametrize(
    "value",
    [
        '<http://a/b>; rel="describedby',
        '<http://a/b>; title="open',
    ],
)
def test_unterminated_quote_fails(value):
    with pytest.raises(LinkParseError) as exc:
        FcrepoLink.value_of(value)
    assert "unterminated quotes" in str(exc.value)


@pytest.mark.parametrize(
    "value",
    [
        "http://a/b; rel=describedby",
        "<http://a/b; rel=describedby",
        "",
        None,
    ],
)
def test_missing_angle_bracketed_uri_fails(value):
    with pytest.raises(LinkParseError) as exc:
        FcrepoLink.value_of(value)
    assert "did not contain a URI" in str(exc.value)


def test_parameter_without_equals_fails():
    with pytest.raises(LinkParseError) as exc:
        FcrepoLink.value_of("<http://a/b>; rel")
    assert "improperly structured parameter" in str(exc.value)


def test_unquoted_comma_fails():
    with pytest.raises(LinkParseError):
        FcrepoLink.value_of('<http://a/b>; rel="x", <http://c/d>; rel="y"')


def test_link_parse_error_is_value_error():
    with pytest.raises(ValueError):
        FcrepoLink.value_of("no uri here")


def test_links_with_rel_matches_case_insensitively():
    headers = [
        '<http://a/desc>; rel="DescribedBy"',
        '<http://a/type>; rel="type"',
        "<http://a/none>",
    ]
    assert links_with_rel(headers, "describedby") == ["http://a/desc"]
    assert links_with_rel(headers, "edit") == []


def test_links_with_rel_propagates_parse_errors():
    with pytest.raises(LinkParseError):
        links_with_rel(['<http://a/b>; rel="x'], "x")
