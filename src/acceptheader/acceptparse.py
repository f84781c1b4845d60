"""
Parses and negotiates ``Accept-*`` headers.

These headers generally take the form of::

    value1; q=0.5, value2; q=0, value3; level=1

Where the ``q`` parameter is optional and defaults to 1.  Other parameters are
kept as attributes of the item they follow.  Items are ranked by descending
quality; items with the same quality keep the order they had in the header.
"""

import logging
import re

from acceptheader.headerutils import (
    combine,
    split,
    to_string,
    )
from acceptheader.util import header_docstring

log = logging.getLogger(__name__)

ACCEPT_SEPARATORS = ',;='
ITEM_SEPARATORS = ';='

QUALITY_ATTRIBUTE = 'q'

# Tried in order when there is no item for the exact value, see
# :rfc:`RFC 7231, section 5.3.2 <7231#section-5.3.2>`.
WILDCARD_FALLBACKS = ('*/*', '*')

# The leading number in a ``q`` value; anything after it is ignored.
numeric_prefix_compiled_re = re.compile(
    r'\s*[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?'
)


def _parse_quality(value):
    match = numeric_prefix_compiled_re.match(value)
    if match is None:
        log.debug('non-numeric quality value %r treated as 0', value)
        return 0.0
    return float(match.group(0))


def _format_quality(quality):
    # shortest form: 0.8 rather than 0.800, 0 rather than 0.0
    text = repr(float(quality))
    if text.endswith('.0'):
        text = text[:-2]
    return text


class AcceptHeaderItem(object):
    """
    Represent one item of an ``Accept-*`` header.

    An item has a *value* (a media range, language range, charset, ...), a
    *quality* between 0 and 1, the *index* of its position in the header it
    was parsed from, and any other parameters as *attributes*.
    """

    def __init__(self, value, attributes=None):
        """
        Create an :class:`AcceptHeaderItem` instance.

        :param value: (``str``) item value, e.g. ``'text/html'``
        :param attributes: (``dict``) attributes, each applied with
                           :meth:`set_attribute` (so a ``'q'`` key sets the
                           quality)
        """
        self._value = value
        self._quality = 1.0
        self._index = 0
        self._attributes = {}
        for name, attribute_value in (attributes or {}).items():
            self.set_attribute(name, attribute_value)

    @classmethod
    def from_string(cls, item_value):
        """
        Create an item from a single header element.

        >>> str(AcceptHeaderItem.from_string('text/html; q=0.5; level=1'))
        'text/html;q=0.5; level=1'
        """
        parts = split(item_value or '', ITEM_SEPARATORS)
        if not parts:
            return cls('')
        value = parts[0][0]
        return cls(value, combine(parts[1:]))

    @property
    def value(self):
        """(``str``) The item value."""
        return self._value

    @value.setter
    def value(self, value):
        self._value = value

    @property
    def quality(self):
        """(``float``) The quality value, ``1.0`` unless a ``q`` was given."""
        return self._quality

    @quality.setter
    def quality(self, quality):
        self._quality = float(quality)

    @property
    def index(self):
        """(``int``) Position of the item in the header it was parsed from."""
        return self._index

    @index.setter
    def index(self, index):
        self._index = int(index)

    @property
    def attributes(self):
        """(``dict``) A copy of the attributes, in the order they were set."""
        return dict(self._attributes)

    def has_attribute(self, name):
        return name in self._attributes

    def get_attribute(self, name, default=None):
        return self._attributes.get(name, default)

    def set_attribute(self, name, value):
        """
        Set an attribute and return ``self``.

        The ``q`` attribute is not stored; its value is parsed as the quality
        instead.  Parsing is best-effort: the leading number is used and a
        value that does not start with a number gives a quality of 0.
        """
        if name == QUALITY_ATTRIBUTE:
            self._quality = _parse_quality(str(value))
        else:
            self._attributes[name] = value
        return self

    def __repr__(self):
        return '<%s(%r)>' % (self.__class__.__name__, str(self))

    def __str__(self):
        string = self._value
        if self._quality < 1:
            string += ';q=' + _format_quality(self._quality)
        if self._attributes:
            string += '; ' + to_string(self._attributes, ';')
        return string


class AcceptHeader(object):
    """
    Represent an ``Accept-*`` header as a collection of items.

    Items are keyed by their value: adding an item whose value is already
    present replaces the existing one.  :meth:`all`, :meth:`first` and
    iteration return items sorted by descending quality, then by ascending
    index.  The sort is done lazily and cached until the next :meth:`add`.

    Instances are not safe to share between threads without locking, as
    reading may sort.
    """

    def __init__(self, items=()):
        """
        Create an :class:`AcceptHeader` instance.

        :param items: iterable of :class:`AcceptHeaderItem` instances, added
                      in order
        """
        self._items = {}
        self._sorted_items = None
        for item in items:
            self.add(item)

    @classmethod
    def from_string(cls, header_value):
        """
        Parse a header value.

        Items are indexed from left to right across the whole header.  When a
        value appears more than once, the last occurrence wins.

        :param header_value: (``str`` or ``None``) header value
        """
        items = []
        for index, groups in enumerate(
            split(header_value or '', ACCEPT_SEPARATORS)
        ):
            item = AcceptHeaderItem(groups[0][0], combine(groups[1:]))
            item.index = index
            items.append(item)
        return cls(items)

    def add(self, item):
        """
        Add an item, replacing any item with the same value, and return
        ``self``.

        :raises TypeError: if `item` is not an :class:`AcceptHeaderItem`
        """
        if not isinstance(item, AcceptHeaderItem):
            raise TypeError(
                'Expected an AcceptHeaderItem, got {!r}'.format(item)
            )
        self._items[item.value] = item
        self._sorted_items = None
        return self

    def has(self, value):
        """
        Return whether an item with exactly this value is in the header.

        Unlike :meth:`get`, wildcards are not taken into account.
        """
        return value in self._items

    def get(self, value):
        """
        Return the item that applies to `value`, or ``None``.

        If there is no item for `value` itself, an item for ``type/*`` (where
        ``type`` is the part of `value` before the first ``/``), ``*/*`` or
        ``*`` is returned, in that order of preference.
        """
        item = self._items.get(value)
        if item is not None:
            return item
        for fallback in (value.split('/', 1)[0] + '/*',) + WILDCARD_FALLBACKS:
            item = self._items.get(fallback)
            if item is not None:
                return item
        return None

    def all(self):
        """Return a ``list`` of the items, most preferred first."""
        return list(self._sorted())

    def first(self):
        """Return the most preferred item, or ``None`` for an empty header."""
        items = self._sorted()
        return items[0] if items else None

    def filter(self, pattern):
        """
        Return a new :class:`AcceptHeader` with only the matching items.

        :param pattern: a regular expression (``str`` or compiled), searched
                        for in each item value, or a callable taking the value
                        and returning whether to keep the item
        """
        if callable(pattern) and not hasattr(pattern, 'search'):
            predicate = pattern
        else:
            predicate = re.compile(pattern).search
        return self.__class__(
            item for item in self._items.values() if predicate(item.value)
        )

    def _sorted(self):
        if self._sorted_items is None:
            self._sorted_items = sorted(
                self._items.values(),
                key=lambda item: (-item.quality, item.index),
            )
        return self._sorted_items

    def __bool__(self):
        return bool(self._items)

    def __contains__(self, value):
        return self.has(value)

    def __iter__(self):
        return iter(self.all())

    def __len__(self):
        return len(self._items)

    def __repr__(self):
        return '<%s(%r)>' % (self.__class__.__name__, str(self))

    def __str__(self):
        return ','.join(str(item) for item in self._items.values())


def create_accept_header(header_value):
    """
    Create an :class:`AcceptHeader` from any supported value.

    :param header_value: ``None``, a header value ``str``, an
                         :class:`AcceptHeader` (returned unchanged), or an
                         iterable of :class:`AcceptHeaderItem` instances
    :raises TypeError: for any other value
    """
    if isinstance(header_value, AcceptHeader):
        return header_value
    if header_value is None or isinstance(header_value, str):
        return AcceptHeader.from_string(header_value)
    try:
        items = iter(header_value)
    except TypeError:
        raise TypeError(
            'Cannot create an AcceptHeader from {!r}'.format(header_value)
        ) from None
    return AcceptHeader(items)


def accept_header_property(header, rfc_section):
    """
    Return a property for an ``Accept-*`` header of an object with a
    ``headers`` mapping.

    *get* parses the stored header value into a new :class:`AcceptHeader`
    every time.  *set* stores ``str(value)``; setting ``None`` or an empty
    value removes the header.  *del* removes the header.
    """
    doc = header_docstring(header, rfc_section)

    def fget(obj):
        return AcceptHeader.from_string(obj.headers.get(header))

    def fset(obj, value):
        if value is not None and not isinstance(value, str):
            value = str(create_accept_header(value))
        if value:
            obj.headers[header] = value
        else:
            fdel(obj)

    def fdel(obj):
        obj.headers.pop(header, None)

    return property(fget, fset, fdel, doc)
