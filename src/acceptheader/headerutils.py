"""
Splitting, combining and rendering of structured header values.

Header values such as ``text/html; q=0.8, text/*; level="1,2"`` are split into
nested lists of tokens, one nesting level per separator character::

    >>> split('text/html; q=0.8, text/*', ',;=')
    [[['text/html'], ['q', '0.8']], [['text/*']]]

Quoted strings (:rfc:`RFC 7230, section 3.2.6 <7230#section-3.2.6>`) are kept
together and unquoted.  Parsing is lenient: header values come from untrusted
clients, so malformed input degrades instead of raising.
"""

import logging
import re

from multipart import header_quote

log = logging.getLogger(__name__)

# RFC 7230 Section 3.2.6 "Field Value Components":
# quoted-string  = DQUOTE *( qdtext / quoted-pair ) DQUOTE
quoted_string_compiled_re = re.compile(r'"(?:[^"\\]|\\.)*"')
# Same, but an unterminated quoted string runs to the end of the value.
lenient_quoted_string_re = r'"(?:[^"\\]|\\.)*(?:"|\\|$)'
quoted_pair_compiled_re = re.compile(r'\\(.)|"')

_split_compiled_res = {}


def _split_compiled_re(separators):
    try:
        return _split_compiled_res[separators]
    except KeyError:
        escaped = re.escape(separators)
        unit_re = '(?:' + lenient_quoted_string_re + '|[^"\\s' + escaped + '])'
        compiled = re.compile(
            # a token, possibly with embedded whitespace and quoted strings
            unit_re + r'(?:\s*' + unit_re + ')*'
            '|'
            # a separator, absorbing the whitespace around it
            r'\s*(?P<separator>[' + escaped + r'])\s*',
        )
        _split_compiled_res[separators] = compiled
        return compiled


def unquote(token):
    """
    Return `token` with unescaped double quotes removed and quoted-pairs
    resolved.

    >>> unquote(r'"a \\"b\\""')
    'a "b"'
    """
    return quoted_pair_compiled_re.sub(r'\1', token)


def quote(value, separator=';'):
    """
    Quote `value` for use as an attribute value, if it needs quoting.

    Empty values become ``""``.  Values with whitespace, a ``,``, `separator`
    or any other special character are wrapped in double quotes, with ``\\``
    and ``"`` escaped.
    """
    if value == '':
        return '""'
    if separator in value:
        return '"' + value.replace('\\', '\\\\').replace('"', '\\"') + '"'
    return header_quote(value)


def split(header, separators):
    """
    Split a header value on a sequence of separator characters.

    :param header: (``str``) header value
    :param separators: (``str``) separator characters, outermost first, e.g.
                       ``',;='``
    :return: nested lists of ``str`` tokens, one level per separator.  Empty
             segments are dropped.  On an inner level, a segment that was split
             into more than two tokens keeps its first token and joins the
             remainder back together (``'a=b=c'`` gives ``['a', 'b=c']``).
    :raises ValueError: if `separators` is empty
    """
    if not separators:
        raise ValueError('At least one separator must be specified.')
    header = header.strip()
    if '"' in quoted_string_compiled_re.sub('', header):
        log.debug('unterminated quoted string in header value %r', header)
    matches = list(_split_compiled_re(separators).finditer(header))
    return _group_parts(matches, separators, first=True)


def _group_parts(matches, separators, first=False):
    separator = separators[0]
    part_separators = separators[1:]

    segments = []
    segment = []
    for match in matches:
        if match.group('separator') == separator:
            if segment:
                segments.append(segment)
            segment = []
        else:
            segment.append(match)
    if segment:
        segments.append(segment)

    if part_separators:
        parts = []
        for segment in segments:
            group = _group_parts(segment, part_separators)
            if group:
                parts.append(group)
        return parts

    # Only token matches are left once every separator has been grouped on.
    parts = [unquote(segment[0].group(0)) for segment in segments]
    if not first and len(parts) > 2:
        parts = [parts[0], separator.join(parts[1:])]
    return parts


def combine(groups):
    """
    Build an attribute ``dict`` from ``[name, value]`` token groups.

    Groups without a value (bare attributes) are skipped; a repeated name
    keeps its last value.
    """
    attributes = {}
    for group in groups:
        if len(group) < 2:
            continue
        attributes[group[0]] = group[1]
    return attributes


def to_string(attributes, separator):
    """
    Render an attribute ``dict`` as ``name=value`` pairs.

    >>> to_string({'level': '1', 'charset': 'utf-8'}, ';')
    'level=1; charset=utf-8'
    """
    return (separator + ' ').join(
        '{}={}'.format(name, quote(value, separator))
        for name, value in attributes.items()
    )
