import re
from typing import Optional

AUTHOR_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z .'-]*$")


class TextValidator:
    """Input checks applied by the CLI before a book reaches the library."""

    @staticmethod
    def _is_non_blank(text: Optional[str]) -> bool:
        return text is not None and bool(text.strip())

    @staticmethod
    def validate_book_id(book_id: Optional[str]) -> bool:
        return TextValidator._is_non_blank(book_id)

    @staticmethod
    def validate_title(title: Optional[str]) -> bool:
        return TextValidator._is_non_blank(title)

    @staticmethod
    def validate_author(author: Optional[str]) -> bool:
        # letters, spaces, apostrophes, hyphens and periods; must start with a letter
        if author is None:
            return False
        return bool(AUTHOR_NAME_PATTERN.match(author.strip()))
