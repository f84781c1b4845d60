from acceptheader.acceptparse import (
    AcceptHeader,
    AcceptHeaderItem,
    accept_header_property,
    create_accept_header,
    )

__all__ = [
    'AcceptHeader', 'AcceptHeaderItem',
    'accept_header_property', 'create_accept_header',
]

__version__ = '1.0.0dev0'
