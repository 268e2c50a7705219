"""
Form body parser (urlencoded and multipart).
"""
from email import policy
from email.parser import BytesParser
from typing import Optional
from urllib.parse import parse_qsl

from ..types import FormData, FormFile

URLENCODED = "application/x-www-form-urlencoded"
MULTIPART = "multipart/form-data"


def parse_form_data(data: bytes, content_type: Optional[str]) -> FormData:
    """
    Parse a form body according to its content type.

    Args:
        data: Raw body bytes.
        content_type: Value of the response Content-Type header.

    Returns:
        FormData with fields in body order.

    Raises:
        ValueError: The content type is not a form type or the body is malformed.
    """
    media_type = (content_type or "").split(";", 1)[0].strip().lower()

    if media_type == URLENCODED:
        pairs = parse_qsl(data.decode("utf-8"), keep_blank_values=True)
        return FormData(items=list(pairs))

    if media_type == MULTIPART:
        return _parse_multipart(data, content_type or "")

    raise ValueError(f"Could not parse content as form data (content-type: {content_type!r})")


def _parse_multipart(data: bytes, content_type: str) -> FormData:
    head = f"Content-Type: {content_type}\r\nMIME-Version: 1.0\r\n\r\n".encode("latin-1")
    message = BytesParser(policy=policy.HTTP).parsebytes(head + data)

    if not message.is_multipart() or message.get_boundary() is None:
        raise ValueError("Could not parse content as form data: missing multipart boundary")

    form = FormData()
    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition")
        if not name:
            raise ValueError("Could not parse content as form data: part without a name")

        payload = part.get_payload(decode=True) or b""
        filename = part.get_filename()
        if filename is not None:
            form.items.append(
                (str(name), FormFile(filename=filename, data=payload, content_type=part.get_content_type()))
            )
        else:
            charset = part.get_content_charset() or "utf-8"
            form.items.append((str(name), payload.decode(charset)))

    return form
