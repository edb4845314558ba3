"""Reader and writer for the catalog and table documents.

Both files use a small JSON-like shape:

    Catalog (``database.json``)::

        {
          "students": ["Profile", "Courses"],
          "library": []
        }

    Table (``<database>.<table>.json``)::

        [
          "SCHEMA: bannerID STRING, gpa FLOAT",
          "'B1',3.8"
        ]

Only string values, arrays of strings and one top-level object or array
occur. Strings are written with ``\\"`` and ``\\\\`` as the only escapes.
The reader is a tokenizer plus a recursive-descent parser; it ignores
whitespace between tokens and accepts a trailing comma before a closing
bracket.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable


class CatalogFormatError(ValueError):
    """Raised when a catalog or table document is malformed."""

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        if position is not None:
            message = f"{message} at offset {position}"
        super().__init__(message)


class TokenType(Enum):
    LBRACE = auto()    # {
    RBRACE = auto()    # }
    LBRACKET = auto()  # [
    RBRACKET = auto()  # ]
    COLON = auto()     # :
    COMMA = auto()     # ,
    STRING = auto()    # "..."
    EOF = auto()


@dataclass(frozen=True)
class Token:
    """Token with its offset in the source text."""

    type: TokenType
    value: str
    position: int


_PUNCTUATION = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
}

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "/": "/"}


class Tokenizer:
    """Lexer for catalog documents. Call ``tokenize(text)`` for a token list."""

    def tokenize(self, text: str) -> list[Token]:
        tokens: list[Token] = []
        pos = 0
        length = len(text)

        while pos < length:
            char = text[pos]
            if char.isspace():
                pos += 1
            elif char in _PUNCTUATION:
                tokens.append(Token(_PUNCTUATION[char], char, pos))
                pos += 1
            elif char == '"':
                token, pos = self._read_string(text, pos)
                tokens.append(token)
            else:
                raise CatalogFormatError(f"Unexpected character {char!r}", pos)

        tokens.append(Token(TokenType.EOF, "", length))
        return tokens

    def _read_string(self, text: str, start: int) -> tuple[Token, int]:
        chars: list[str] = []
        pos = start + 1
        while pos < len(text):
            char = text[pos]
            if char == '"':
                return Token(TokenType.STRING, "".join(chars), start), pos + 1
            if char == "\\":
                pos += 1
                if pos >= len(text):
                    break
                escaped = text[pos]
                if escaped == "u" and pos + 4 < len(text):
                    try:
                        chars.append(chr(int(text[pos + 1:pos + 5], 16)))
                    except ValueError:
                        raise CatalogFormatError("Invalid unicode escape", pos) from None
                    pos += 5
                    continue
                chars.append(_ESCAPES.get(escaped, escaped))
            else:
                chars.append(char)
            pos += 1
        raise CatalogFormatError("Unterminated string", start)


class DocumentParser:
    """Recursive-descent parser over the token list.

    Grammar::

        document := object | array
        object   := "{" [ STRING ":" array { "," STRING ":" array } [","] ] "}"
        array    := "[" [ STRING { "," STRING } [","] ] "]"
    """

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    def parse_object(self) -> dict[str, list[str]]:
        self._expect(TokenType.LBRACE)
        result: dict[str, list[str]] = {}
        while self._peek().type != TokenType.RBRACE:
            key = self._expect(TokenType.STRING).value
            self._expect(TokenType.COLON)
            result[key] = self.parse_array()
            if not self._accept(TokenType.COMMA):
                break
        self._expect(TokenType.RBRACE)
        return result

    def parse_array(self) -> list[str]:
        self._expect(TokenType.LBRACKET)
        items: list[str] = []
        while self._peek().type != TokenType.RBRACKET:
            items.append(self._expect(TokenType.STRING).value)
            if not self._accept(TokenType.COMMA):
                break
        self._expect(TokenType.RBRACKET)
        return items

    def expect_end(self) -> None:
        self._expect(TokenType.EOF)

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _accept(self, token_type: TokenType) -> bool:
        if self._peek().type == token_type:
            self._pos += 1
            return True
        return False

    def _expect(self, token_type: TokenType) -> Token:
        token = self._peek()
        if token.type != token_type:
            raise CatalogFormatError(
                f"Expected {token_type.name}, found {token.type.name}", token.position
            )
        self._pos += 1
        return token


def decode_catalog(text: str) -> dict[str, list[str]]:
    """Parse a catalog document. Blank text is an empty catalog.

    Raises:
        CatalogFormatError: If the document is malformed.
    """
    if not text.strip():
        return {}
    parser = DocumentParser(Tokenizer().tokenize(text))
    catalog = parser.parse_object()
    parser.expect_end()
    return catalog


def decode_rows(text: str) -> list[str]:
    """Parse a table document. Blank text is an empty row sequence.

    Raises:
        CatalogFormatError: If the document is malformed.
    """
    if not text.strip():
        return []
    parser = DocumentParser(Tokenizer().tokenize(text))
    rows = parser.parse_array()
    parser.expect_end()
    return rows


def quote(value: str) -> str:
    """Quote a string with the minimal escaping the reader expects."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _array(items: Iterable[str]) -> str:
    return "[" + ", ".join(quote(item) for item in items) + "]"


def encode_catalog(catalog: dict[str, list[str]]) -> str:
    """Render the catalog, one database per line, in insertion order."""
    lines = [f"  {quote(name)}: {_array(tables)}" for name, tables in catalog.items()]
    return "{\n" + ",\n".join(lines) + ("\n" if lines else "") + "}\n"


def encode_rows(rows: Iterable[str]) -> str:
    """Render a table's row sequence, one row per line."""
    lines = [f"  {quote(row)}" for row in rows]
    return "[\n" + ",\n".join(lines) + ("\n" if lines else "") + "]\n"
