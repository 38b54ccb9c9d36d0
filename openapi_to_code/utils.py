"""
Identifier casing and sanitization helpers.

The casing strategy is pluggable: ``get_name_normalizer`` returns one of the
registered strategies by name, or accepts any ``str -> str`` callable.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

# Everything that is not an ASCII letter or digit separates words
_SEPARATOR_PATTERN = re.compile(r"[^0-9A-Za-z]+")

# Regex pattern to split a word further on camelCase / acronym boundaries
_WORD_PATTERN = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|[0-9]+")

_DIGIT_THEN_LOWER = re.compile(r"([0-9])([a-z])")

# Marker words for characters that cannot appear in identifiers
SPECIAL_CHARACTER_WORDS = {
    "$": "DollarSign",
    "-": "Minus",
    "+": "Plus",
    "&": "And",
    "|": "Or",
    "~": "Tilde",
    "=": "Equal",
    ">": "GreaterThan",
    "<": "LessThan",
    "#": "Hash",
    ".": "Dot",
    "*": "Asterisk",
    "^": "Caret",
    "%": "Percent",
    "_": "Underscore",
    " ": "Space",
    "\t": "Tab",
    "\n": "Newline",
    "\r": "CarriageReturn",
    "/": "Slash",
    "\\": "Backslash",
    ":": "Colon",
    ";": "Semicolon",
    ",": "Comma",
    "!": "Exclamation",
    "?": "Question",
    "@": "At",
    "'": "Quote",
    '"': "DoubleQuote",
    "`": "Backtick",
    "(": "LeftParen",
    ")": "RightParen",
    "[": "LeftBracket",
    "]": "RightBracket",
    "{": "LeftBrace",
    "}": "RightBrace",
}

DEFAULT_INITIALISMS = (
    "ACL",
    "API",
    "ASCII",
    "CPU",
    "CSS",
    "DB",
    "DNS",
    "EOF",
    "GUID",
    "HTML",
    "HTTP",
    "HTTPS",
    "ID",
    "IP",
    "JSON",
    "JWT",
    "LHS",
    "OK",
    "QPS",
    "RAM",
    "RHS",
    "RPC",
    "SLA",
    "SMTP",
    "SQL",
    "SSH",
    "TCP",
    "TLS",
    "TTL",
    "UDP",
    "UI",
    "UID",
    "URI",
    "URL",
    "UTF8",
    "UUID",
    "VM",
    "XML",
    "XMPP",
    "XSRF",
    "XSS",
)

NameNormalizer = Callable[[str], str]


def _split_words(text: str) -> list[str]:
    """Split text on every non alphanumeric character."""
    return [word for word in _SEPARATOR_PATTERN.split(text) if word]


def _upper_first(word: str) -> str:
    return word[:1].upper() + word[1:]


def to_camel_case(text: str) -> str:
    """Convert text to UpperCamelCase, keeping the inner casing of each word.

    Examples:
        "first_name" -> "FirstName"
        "petType" -> "PetType"
        "x-rate-limit" -> "XRateLimit"
        "v1beta" -> "V1beta"
    """
    return "".join(_upper_first(word) for word in _split_words(text))


def to_camel_case_with_digits(text: str) -> str:
    """Like ``to_camel_case``, but also capitalize a letter that follows a digit.

    Examples:
        "v1beta" -> "V1Beta"
        "2fa_code" -> "2FaCode"
    """
    words = []
    for word in _split_words(text):
        word = _DIGIT_THEN_LOWER.sub(lambda m: m.group(1) + m.group(2).upper(), word)
        words.append(_upper_first(word))
    return "".join(words)


def to_camel_case_with_initialisms(text: str, initialisms: Iterable[str] = DEFAULT_INITIALISMS) -> str:
    """Convert text to UpperCamelCase, upper-casing known initialisms.

    Examples:
        "user_id" -> "UserID"
        "apiUrl" -> "APIURL"
        "http_status" -> "HTTPStatus"

    Args:
        text: The text to convert
        initialisms: Words that are written fully upper-cased

    Returns:
        UpperCamelCase string
    """
    known = {word.upper() for word in initialisms}
    parts = []
    for word in _split_words(text):
        for piece in _WORD_PATTERN.findall(word):
            if piece.upper() in known:
                parts.append(piece.upper())
            else:
                parts.append(_upper_first(piece.lower() if piece.isupper() and len(piece) > 1 else piece))
    return "".join(parts)


NAME_NORMALIZERS: dict[str, Callable[[Iterable[str]], NameNormalizer]] = {
    "ToCamelCase": lambda initialisms: to_camel_case,
    "ToCamelCaseWithDigits": lambda initialisms: to_camel_case_with_digits,
    "ToCamelCaseWithInitialisms": lambda initialisms: (lambda text: to_camel_case_with_initialisms(text, initialisms)),
}


def get_name_normalizer(normalizer: str | NameNormalizer = "ToCamelCase", additional_initialisms: Iterable[str] = ()) -> NameNormalizer:
    """
    Look up a casing strategy.

    Args:
        normalizer: Registered strategy name, or a callable used as-is
        additional_initialisms: Extra initialisms for the initialism-aware strategy

    Returns:
        A ``str -> str`` casing function
    """
    if callable(normalizer):
        return normalizer
    if normalizer not in NAME_NORMALIZERS:
        raise ValueError(f"Unknown name normalizer {normalizer!r}, expected one of {sorted(NAME_NORMALIZERS)}")
    initialisms = tuple(DEFAULT_INITIALISMS) + tuple(additional_initialisms)
    return NAME_NORMALIZERS[normalizer](initialisms)


def type_name_prefix(name: str) -> str:
    """Marker prepended to a name whose first character cannot start an identifier."""
    if not name:
        return "Empty"
    first = name[0]
    if first.isdigit():
        return "N"
    return SPECIAL_CHARACTER_WORDS.get(first, "")


def schema_name_to_type_name(name: str, normalizer: NameNormalizer = to_camel_case) -> str:
    """Convert a component or property name to a type name.

    Examples:
        "pet_store" -> "PetStore"
        "_foo" -> "UnderscoreFoo"
        "123" -> "N123"
        "-1" -> "Minus1"
        "$" -> "DollarSign"
        "" -> "Empty"
    """
    if name == "$":
        return "DollarSign"
    if not name:
        return "Empty"
    converted = normalizer(type_name_prefix(name) + name)
    if not converted:
        return transliterate(name)
    return converted


def whitespace_words(text: str) -> str:
    """Spell out a run of characters with their marker words ("  " -> "SpaceSpace")."""
    return "".join(SPECIAL_CHARACTER_WORDS.get(char, f"U{ord(char):04X}") for char in text)


def transliterate(text: str) -> str:
    """Replace every character that cannot appear in an identifier by its marker word.

    The letter following a marker is upper-cased, and a leading digit gets
    the "N" prefix.

    Examples:
        "Foo Bar" -> "FooSpaceBar"
        "Foo-Bar" -> "FooMinusBar"
        "a.b" -> "ADotB"
        "1.5" -> "N1Dot5"
    """
    if not text:
        return "Empty"
    parts = []
    upper_next = True
    for char in text:
        if char.isascii() and char.isalnum():
            parts.append(char.upper() if upper_next else char)
            upper_next = False
        else:
            parts.append(SPECIAL_CHARACTER_WORDS.get(char, f"U{ord(char):04X}"))
            upper_next = True
    result = "".join(parts)
    if result[0].isdigit():
        result = "N" + result
    return result
