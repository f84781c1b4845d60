def header_docstring(header, rfc_section):
    link = "https://datatracker.ietf.org/doc/html/rfc7231#section-{}".format(
        rfc_section,
    )

    return (
        "Gets and sets the ``{}`` header (`RFC 7231 section {} <{}>`_).\n\n"
        "The header value is parsed into a new :class:`AcceptHeader` every "
        "time the property is read.".format(header, rfc_section, link)
    )
