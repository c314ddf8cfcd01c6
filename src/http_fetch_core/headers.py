"""
Header line parsing for http_fetch_core.

Two parsers are provided. The lenient parser splits on the first
colon and accepts anything else; the strict parser follows the
RFC 7230 ``header-field`` grammar and rejects lines the lenient
parser would accept. Both agree on well-formed input.
"""

import logging
import re
from itertools import groupby
from operator import itemgetter
from typing import Dict, Iterable, List, Tuple

from .exceptions import HeaderParseError

logger = logging.getLogger(__name__)

HeaderPair = Tuple[str, str]
GroupedHeaders = Dict[str, Tuple[str, ...]]

# RFC 7230 section 3.2:
#   header-field   = field-name ":" OWS field-value OWS
#   field-name     = token
#   field-value    = *( field-content / obs-fold )
#   field-content  = field-vchar [ 1*( SP / HTAB ) field-vchar ]
#   field-vchar    = VCHAR / obs-text
# field-value repeats field-content, so runs of field-vchar may sit
# between whitespace. obs-fold is not accepted.
_TOKEN = rb"[-!#$%&'*+.^_`|~0-9A-Za-z]+"
_OWS = rb"[ \t]*"
_FIELD_VCHAR = rb"[\x21-\x7e\x80-\xff]"
_FIELD_CONTENT = _FIELD_VCHAR + rb"+(?:[ \t]+" + _FIELD_VCHAR + rb"+)*"
_HEADER_FIELD = re.compile(
    rb"(?P<name>" + _TOKEN + rb"):" + _OWS
    + rb"(?P<value>(?:" + _FIELD_CONTENT + rb")?)" + _OWS
)


def _strip_eol(line: bytes) -> bytes:
    if line.endswith(b"\r\n"):
        return line[:-2]
    if line.endswith(b"\n"):
        return line[:-1]
    return line


def parse_header_line_lenient(line: bytes) -> HeaderPair:
    """
    Parse a header line by splitting on the first colon.

    Args:
        line: Raw header line, with or without the trailing CRLF

    Returns:
        Lower-cased name and whitespace-stripped value

    Raises:
        HeaderParseError: If there is no colon or the name is empty
    """
    line = _strip_eol(line)
    name, sep, value = line.partition(b":")
    if not sep:
        raise HeaderParseError(line, "missing colon")
    name = name.strip()
    if not name:
        raise HeaderParseError(line, "empty field name")
    return name.decode("latin-1").lower(), value.strip().decode("latin-1")


def parse_header_line_strict(line: bytes) -> HeaderPair:
    """
    Parse a header line according to the RFC 7230 grammar.

    Raises:
        HeaderParseError: If the line does not match ``header-field``
    """
    line = _strip_eol(line)
    match = _HEADER_FIELD.fullmatch(line)
    if match is None:
        raise HeaderParseError(line, "does not match header-field grammar")
    return (
        match.group("name").decode("ascii").lower(),
        match.group("value").decode("latin-1"),
    )


def parse_header_line(line: bytes, strict: bool = False) -> HeaderPair:
    if strict:
        return parse_header_line_strict(line)
    return parse_header_line_lenient(line)


def group_headers(pairs: Iterable[HeaderPair]) -> GroupedHeaders:
    """
    Group header pairs by name.

    Names come out sorted; values of a repeated name keep the
    order in which they were received.
    """
    # sorted() is stable, so values of equal names stay in arrival order
    ordered = sorted(pairs, key=itemgetter(0))
    return {
        name: tuple(value for _, value in group)
        for name, group in groupby(ordered, key=itemgetter(0))
    }


def parse_headers(lines: Iterable[bytes], strict: bool = False) -> GroupedHeaders:
    """
    Parse raw header lines into a mapping of name to ordered values.

    Args:
        lines: Raw header lines as received
        strict: Use the grammar parser instead of the lenient one

    Raises:
        HeaderParseError: If a line is rejected by the chosen parser
    """
    pairs: List[HeaderPair] = []
    for line in lines:
        logger.debug(f"Header line: {line!r}")
        pairs.append(parse_header_line(line, strict=strict))
    return group_headers(pairs)
