from __future__ import annotations

import re
import typing

_TYPE_FIELD_VALUE = typing.Union[str, bytes]

#: Content type of the streamed file part of an upload.
DEFAULT_FILE_CONTENT_TYPE = "application/octet-stream"

_HTML5_REPLACEMENTS = {
    "\u0022": "%22",
    # Replace "\" with "\\".
    "\u005C": "\u005C\u005C",
}

# All control characters from 0x00 to 0x1F *except* 0x1B.
_HTML5_REPLACEMENTS.update(
    {chr(cc): f"%{cc:02X}" for cc in range(0x00, 0x1F + 1) if cc not in (0x1B,)}
)

_HTML5_PATTERN = re.compile(
    r"|".join([re.escape(needle) for needle in _HTML5_REPLACEMENTS.keys()])
)


def format_header_param_html5(name: str, value: _TYPE_FIELD_VALUE) -> str:
    """
    Format and quote a single header parameter using the HTML5 strategy.

    This matches the behavior of curl and modern browsers: quotes and
    backslashes are escaped and control characters are percent-encoded,
    everything else (including non-ASCII) is passed through as UTF-8.

    :param name:
        The name of the parameter, a string expected to be ASCII only.
    :param value:
        The value of the parameter, provided as ``bytes`` or ``str``.
    """
    if isinstance(value, bytes):
        value = value.decode("utf-8")

    value = _HTML5_PATTERN.sub(lambda m: _HTML5_REPLACEMENTS[m.group(0)], value)

    return f'{name}="{value}"'


class RequestField:
    """
    A single part of a multipart/form-data body.

    Text fields carry their value in ``data``. File parts are rendered
    without data; their content is streamed separately by
    :class:`~pasterun.filepost.MultipartWriter`.

    :param name:
        The form name of this part.
    :param data:
        The value of a text field, or ``None`` for a streamed part.
    :param filename:
        An optional filename, which marks the part as a file upload.
    :param headers:
        An optional dict-like object of extra headers for the part.
    """

    def __init__(
        self,
        name: str,
        data: _TYPE_FIELD_VALUE | None = None,
        filename: str | None = None,
        headers: typing.Mapping[str, str] | None = None,
    ) -> None:
        self._name = name
        self._filename = filename
        self.data = data
        self.headers: dict[str, str | None] = {}
        if headers:
            self.headers = dict(headers)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self._name!r}, filename={self._filename!r})"
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def filename(self) -> str | None:
        return self._filename

    @classmethod
    def text(cls, name: str, value: str) -> RequestField:
        """A plain form field, as written by an HTML ``<input>``."""
        field = cls(name, value)
        field.make_multipart()
        return field

    @classmethod
    def file(
        cls, name: str, filename: str, content_type: str = DEFAULT_FILE_CONTENT_TYPE
    ) -> RequestField:
        """The header half of a file part whose content is streamed."""
        field = cls(name, filename=filename)
        field.make_multipart(content_type=content_type)
        return field

    def _render_parts(
        self, header_parts: typing.Sequence[tuple[str, _TYPE_FIELD_VALUE | None]]
    ) -> str:
        """
        Format ``(k, v)`` pairs as ``k1="v1"; k2="v2"; ...``, skipping any
        pair whose value is ``None``.
        """
        return "; ".join(
            format_header_param_html5(name, value)
            for name, value in header_parts
            if value is not None
        )

    def render_headers(self) -> str:
        """
        Renders the headers for this part, followed by the blank line that
        separates them from the part's content.
        """
        lines = []

        sort_keys = ["Content-Disposition", "Content-Type", "Content-Location"]
        for sort_key in sort_keys:
            if self.headers.get(sort_key, False):
                lines.append(f"{sort_key}: {self.headers[sort_key]}")

        for header_name, header_value in self.headers.items():
            if header_name not in sort_keys:
                if header_value:
                    lines.append(f"{header_name}: {header_value}")

        lines.append("\r\n")
        return "\r\n".join(lines)

    def make_multipart(
        self,
        content_disposition: str | None = None,
        content_type: str | None = None,
    ) -> None:
        """
        Set the "Content-Disposition" and "Content-Type" headers of this part.

        :param content_disposition:
            The disposition type. Defaults to 'form-data'.
        :param content_type:
            The 'Content-Type' of the part, omitted when ``None``.
        """
        params = self._render_parts(
            (("name", self._name), ("filename", self._filename))
        )
        self.headers["Content-Disposition"] = (
            f"{content_disposition or 'form-data'}; {params}"
        )
        self.headers["Content-Type"] = content_type
