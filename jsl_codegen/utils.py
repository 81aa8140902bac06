"""
Utility functions for the JSL code generator.
"""

import re

# Regex pattern to split text into words, handling camelCase and acronym boundaries.
# Trailing digits stay attached to the word they follow ("int32", "v2").
_WORD_PATTERN = re.compile(r"[A-Z]+(?=[A-Z][a-z])[0-9]*|[A-Z]?[a-z]+[0-9]*|[A-Z]+[0-9]*|[0-9]+")

# A plain ASCII identifier, valid in every supported target language
_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _normalize_separators(text: str) -> str:
    """Normalize separators (underscores, hyphens, dots) to spaces."""
    return text.replace("_", " ").replace("-", " ").replace(".", " ")


def split_words(text: str) -> list[str]:
    """Split text into words, handling camelCase boundaries.

    Examples:
        "first_name" -> ["first", "name"]
        "HTTPServer" -> ["HTTP", "Server"]
        "userId2" -> ["user", "Id2"]
    """
    return _WORD_PATTERN.findall(_normalize_separators(text))


def to_pascal_case(text: str) -> str:
    """Convert snake_case, camelCase, or space-separated text to PascalCase.

    Examples:
        "first_name" -> "FirstName"
        "FIRST_NAME" -> "FirstName"
        "actionTemplate" -> "ActionTemplate"
        "first 3 rows" -> "First3Rows"
        "ABC" -> "Abc"
    """
    return "".join(word.capitalize() for word in split_words(text))


def to_camel_case(text: str) -> str:
    """Convert text to camelCase ("first_name" -> "firstName")."""
    words = split_words(text)
    if not words:
        return ""
    return words[0].lower() + "".join(word.capitalize() for word in words[1:])


def to_snake_case(text: str) -> str:
    """Convert text to snake_case ("firstName" -> "first_name")."""
    return "_".join(word.lower() for word in split_words(text))


def to_screaming_snake_case(text: str) -> str:
    """Convert text to SCREAMING_SNAKE_CASE ("firstName" -> "FIRST_NAME")."""
    return "_".join(word.upper() for word in split_words(text))


def is_identifier(text: str) -> bool:
    """Check whether text is a plain ASCII identifier."""
    return bool(_IDENTIFIER_PATTERN.match(text))


def comment_lines(text: str | None) -> list[str]:
    """Split a description into comment lines, dropping trailing blank lines."""
    if not text:
        return []
    return text.rstrip().split("\n")


def escape_block_comment(text: str) -> str:
    """Break "*/" so the text cannot close a /* */ comment early."""
    return text.replace("*/", "*\\/")
