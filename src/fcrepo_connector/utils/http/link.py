"""Parsing and construction of HTTP Link header values.

A Link header value has the form ``<uri>; name="value"; name2=value2``.
:class:`FcrepoLink` parses a single link-value into its target URI and an
immutable parameter mapping, and renders it back to header form.
:class:`FcrepoLink.Builder` is the inverse of parsing and is used when a
header has to be synthesized rather than read.

Examples:
    >>> link = FcrepoLink.value_of('<http://localhost/rest/a/fcr:metadata>; rel="describedby"')
    >>> link.uri
    'http://localhost/rest/a/fcr:metadata'
    >>> link.rel
    'describedby'
"""

import re
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

import httpx

from ...exceptions import LinkParseError

PARAM_DELIM = ";"
META_REL = "rel"
META_TYPE = "type"

_TOKENIZER = re.compile(r'([;",])')


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def _validate_uri(uri: str, raw: Optional[str] = None) -> str:
    try:
        httpx.URL(uri)
    except httpx.InvalidURL as e:
        raise LinkParseError(f"Link header contains an invalid URI: {e}", raw) from e
    return uri


class FcrepoLink:
    """The value of an HTTP Link header.

    :param link: Raw link-value to parse
    :type link: str
    :raises LinkParseError: If the value is empty, lacks an angle-bracketed
        URI, has unterminated quotes or a malformed parameter
    """

    __slots__ = ("_uri", "_params")

    def __init__(self, link: Optional[str]):
        if not link:
            raise LinkParseError("Link header did not contain a URI", link)
        self._params: Mapping[str, str] = MappingProxyType({})
        self._uri = ""
        self._parse(link)

    @classmethod
    def value_of(cls, link: Optional[str]) -> "FcrepoLink":
        """Parse a Link header value.

        :param link: Raw link-value
        :type link: Optional[str]
        :return: Parsed link
        :rtype: FcrepoLink
        """
        return cls(link)

    @classmethod
    def _from_parts(cls, uri: str, params: Dict[str, str]) -> "FcrepoLink":
        link = cls.__new__(cls)
        link._uri = uri
        link._params = MappingProxyType(dict(params))
        return link

    @property
    def uri(self) -> str:
        """Target URI of the link."""
        return self._uri

    @property
    def rel(self) -> Optional[str]:
        """The ``rel`` parameter or None."""
        return self.get_param(META_REL)

    @property
    def type(self) -> Optional[str]:
        """The ``type`` parameter or None."""
        return self.get_param(META_TYPE)

    @property
    def params(self) -> Mapping[str, str]:
        """All parameters as a read-only mapping."""
        return self._params

    def get_param(self, name: str) -> Optional[str]:
        """Return the named parameter, or None if absent."""
        return self._params.get(name)

    def _parse(self, link: str) -> None:
        param_index = self._first_unquoted_delim(link)
        if param_index == -1:
            self._uri = self._get_link_part(link)
        else:
            self._uri = self._get_link_part(link[:param_index])
            self._params = MappingProxyType(
                self._parse_params(link[param_index + 1 :], link)
            )

    @staticmethod
    def _first_unquoted_delim(link: str) -> int:
        in_quotes = False
        for i, ch in enumerate(link):
            if ch == '"':
                in_quotes = not in_quotes
            elif ch == PARAM_DELIM and not in_quotes:
                return i
        return -1

    @staticmethod
    def _parse_params(param_string: str, raw: str) -> Dict[str, str]:
        """Parse the parameter portion of a link-value.

        The string is split on ``;``, ``"`` and ``,`` with the delimiters
        kept. Quotes toggle a quoted section and are dropped; an unquoted
        ``;`` ends the current parameter; an unquoted ``,`` would start a
        second link-value and is rejected.
        """
        tokens = [t for t in _TOKENIZER.split(param_string) if t]
        params: Dict[str, str] = {}
        pos = 0
        while pos < len(tokens):
            in_quotes = False
            chunk: List[str] = []
            while pos < len(tokens):
                token = tokens[pos]
                pos += 1
                if token == '"':
                    in_quotes = not in_quotes
                    continue
                if not in_quotes and token == PARAM_DELIM:
                    break
                if not in_quotes and token == ",":
                    raise LinkParseError(
                        "Cannot parse link, contains unterminated quotes", raw
                    )
                chunk.append(token)

            if in_quotes:
                raise LinkParseError(
                    "Cannot parse link, contains unterminated quotes", raw
                )

            param = "".join(chunk)
            name, sep, value = param.partition("=")
            if not sep:
                raise LinkParseError(
                    "Cannot parse link, improperly structured parameter "
                    f"encountered: {param}",
                    raw,
                )
            params[name.strip()] = value.strip()
        return params

    @staticmethod
    def _get_link_part(uri_part: str) -> str:
        link_part = uri_part.strip()
        if len(link_part) >= 2 and link_part.startswith("<") and link_part.endswith(">"):
            return _validate_uri(link_part[1:-1], uri_part)
        raise LinkParseError("Link header did not contain a URI", uri_part)

    def __str__(self) -> str:
        parts = [f"<{self._uri}>"]
        for name, value in self._params.items():
            parts.append(f'{name}="{value}"')
        return "; ".join(parts)

    def __repr__(self) -> str:
        return f"FcrepoLink({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FcrepoLink):
            return NotImplemented
        return self._uri == other._uri and dict(self._params) == dict(other._params)

    def __hash__(self) -> int:
        return hash((self._uri, frozenset(self._params.items())))

    class Builder:
        """Construct a :class:`FcrepoLink` from its parts.

        .. example::
           >>> str(FcrepoLink.Builder().uri("http://a/b").rel("describedby").build())
           '<http://a/b>; rel="describedby"'
        """

        def __init__(self) -> None:
            self._uri: Optional[str] = None
            self._params: Dict[str, str] = {}

        def uri(self, uri: str) -> "FcrepoLink.Builder":
            self._uri = _validate_uri(str(uri))
            return self

        def rel(self, rel: str) -> "FcrepoLink.Builder":
            return self.param(META_REL, rel)

        def type(self, type_: str) -> "FcrepoLink.Builder":
            return self.param(META_TYPE, type_)

        def param(self, name: str, value: str) -> "FcrepoLink.Builder":
            self._params[name] = _strip_quotes(value)
            return self

        def build(self) -> "FcrepoLink":
            if self._uri is None:
                raise LinkParseError("Link requires a URI")
            return FcrepoLink._from_parts(self._uri, self._params)


def links_with_rel(header_values: Iterable[str], relationship: str) -> List[str]:
    """Get the URIs of all links with the given relationship.

    Relationship names are compared case-insensitively. Links without a
    ``rel`` parameter never match.

    :param header_values: Raw Link header values
    :type header_values: Iterable[str]
    :param relationship: The rel to match against
    :type relationship: str
    :return: Matching link URIs in header order
    :rtype: List[str]
    :raises LinkParseError: If any header value is malformed
    """
    wanted = relationship.lower()
    uris = []
    for value in header_values:
        link = FcrepoLink.value_of(value)
        if link.rel is not None and link.rel.lower() == wanted:
            uris.append(link.uri)
    return uris


__all__ = ["FcrepoLink", "links_with_rel"]
