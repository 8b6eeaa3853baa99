"""Restricted record format used by the library data file.

The file holds a bracketed, comma-separated list of *flat* objects. String values
are quoted with a small escape set; integers and floats are written bare. This
module does not parse general JSON: nested objects or arrays are not supported
and their decoding is undefined. The exact text shape is what older data files
contain, so encoding stays byte-compatible with them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional, Tuple, Union

if TYPE_CHECKING:
    from bookshelf.book import BookRecord
    from bookshelf.catalog import Catalog

FieldValue = Union[str, int, float]

RECORD_LIBRARY = "LIBRARY"
RECORD_BOOK = "BOOK"

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}
_UNESCAPES = {
    '"': '"',
    "\\": "\\",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}


# ------------------------- Encoding ------------------------- #
def escape(value: Optional[str]) -> str:
    if value is None:
        return ""
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def _encode_value(value: FieldValue) -> str:
    if isinstance(value, str):
        return f'"{escape(value)}"'
    if isinstance(value, bool):
        raise TypeError("Boolean values are not part of the record format.")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    raise TypeError(f"Unsupported value type for record format: {type(value).__name__}")


def _encode_object(record: Mapping[str, FieldValue]) -> str:
    lines = [f'    "{escape(key)}": {_encode_value(value)}' for key, value in record.items()]
    return "  {\n" + ",\n".join(lines) + "\n  }"


def encode(records: Iterable[Mapping[str, FieldValue]]) -> str:
    """Encode flat records as a bracketed list, one field per line."""
    return "[\n" + ",\n".join(_encode_object(record) for record in records) + "\n]"


def catalog_row(catalog: "Catalog") -> Dict[str, FieldValue]:
    return {
        "recordType": RECORD_LIBRARY,
        "libraryName": catalog.name,
        "libraryLocation": catalog.location,
    }


def book_row(catalog: "Catalog", book: "BookRecord") -> Dict[str, FieldValue]:
    return {
        "recordType": RECORD_BOOK,
        "libraryName": catalog.name,
        "libraryLocation": catalog.location,
        "type": book.kind.value,
        "bookId": book.book_id,
        "title": book.title,
        "author": book.author,
        "category": book.category,
        "totalCopies": book.total_copies,
        "issuedCopies": book.issued_copies,
        "fileFormat": book.file_format if book.is_electronic else "",
        "fileSizeMB": float(book.file_size_mb) if book.is_electronic else 0.0,
    }


def catalog_rows(catalogs: Iterable["Catalog"]) -> List[Dict[str, FieldValue]]:
    """Flatten catalogs into rows: each LIBRARY row followed by its BOOK rows."""
    rows: List[Dict[str, FieldValue]] = []
    for catalog in catalogs:
        rows.append(catalog_row(catalog))
        rows.extend(book_row(catalog, book) for book in catalog.books)
    return rows


def encode_catalogs(catalogs: Iterable["Catalog"]) -> str:
    return encode(catalog_rows(catalogs))


# ------------------------- Decoding ------------------------- #
def split_objects(text: str) -> List[str]:
    """Return the raw text of every top-level ``{...}`` span.

    Braces inside quoted strings do not count towards depth; a backslash inside a
    string escapes the next character.
    """
    objects: List[str] = []
    depth = 0
    start = -1
    in_string = False
    escaping = False

    for i, ch in enumerate(text):
        if in_string:
            if escaping:
                escaping = False
            elif ch == "\\":
                escaping = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0 and start >= 0:
                objects.append(text[start:i + 1])
                start = -1
    return objects


def read_quoted(text: str, start: int) -> Optional[Tuple[str, int]]:
    """Decode the quoted string opening at ``start``.

    Returns the unescaped value and the index just past the closing quote, or None
    if ``start`` is not a quote or the string never terminates. Unknown escapes
    yield the escaped character itself.
    """
    if start < 0 or start >= len(text) or text[start] != '"':
        return None

    chars: List[str] = []
    escaping = False
    for i in range(start + 1, len(text)):
        ch = text[i]
        if escaping:
            chars.append(_UNESCAPES.get(ch, ch))
            escaping = False
        elif ch == "\\":
            escaping = True
        elif ch == '"':
            return "".join(chars), i + 1
        else:
            chars.append(ch)
    return None


def _bare_value_end(text: str, start: int) -> int:
    ends = [pos for pos in (text.find(",", start), text.find("}", start)) if pos >= 0]
    return min(ends) if ends else len(text)


def parse_object(raw: str) -> Dict[str, str]:
    """Parse one flat object into key -> raw string value, in field order.

    Parsing stops at the first key without a colon or an unterminated string;
    fields read before that point are kept.
    """
    fields: Dict[str, str] = {}
    index = 0

    while index < len(raw):
        key_start = raw.find('"', index)
        if key_start < 0:
            break
        key = read_quoted(raw, key_start)
        if key is None:
            break
        key_text, after_key = key

        colon = raw.find(":", after_key)
        if colon < 0:
            break

        value_start = colon + 1
        while value_start < len(raw) and raw[value_start].isspace():
            value_start += 1

        if value_start < len(raw) and raw[value_start] == '"':
            value = read_quoted(raw, value_start)
            if value is None:
                break
            value_text, index = value
        else:
            value_end = _bare_value_end(raw, value_start)
            value_text = raw[value_start:value_end].strip()
            index = value_end + 1

        fields[key_text] = value_text
    return fields


def decode(text: str) -> List[Dict[str, str]]:
    """Decode every top-level object in ``text``, preserving document order."""
    return [parse_object(raw) for raw in split_objects(text)]
