"""
Text Utilities

Helper functions for identifiers and file names derived from catalog text.
"""

import re
import unicodedata


def fold_accents(text: str) -> str:
    """
    Strip diacritics, keeping the base Latin characters.

    Example:
        >>> fold_accents("Categoría Niños")
        'Categoria Ninos'
    """
    normalized = unicodedata.normalize('NFKD', text)
    return ''.join(char for char in normalized if not unicodedata.combining(char))


def slugify(text: str, separator: str = '_') -> str:
    """
    Generate a lowercase identifier from free text.

    Whitespace and punctuation collapse into a single separator.

    Args:
        text: Category, subcategory or asset name
        separator: Replacement for runs of non-alphanumeric characters

    Returns:
        Identifier-safe slug (may be empty for input without letters/digits)

    Example:
        >>> slugify("Morrales Escolares")
        'morrales_escolares'
        >>> slugify("Categoría  Niños", separator='-')
        'categoria-ninos'
    """
    result = []
    for char in fold_accents(str(text)).lower():
        if char.isalnum():
            result.append(char)
        else:
            result.append(separator)

    slug = ''.join(result)
    slug = re.sub(rf'{re.escape(separator)}+', separator, slug)
    return slug.strip(separator)


def sanitize_filename(filename: str) -> str:
    """
    Make a remote-supplied file name safe to write locally.

    Drops any directory components and replaces characters outside
    [A-Za-z0-9._-] with underscores. The extension is preserved.

    Example:
        >>> sanitize_filename("../Foto Frontal (1).JPG")
        'Foto_Frontal_1_.JPG'
    """
    name = str(filename).replace('\\', '/').split('/')[-1]
    name = fold_accents(name)
    name = re.sub(r'[^A-Za-z0-9._-]+', '_', name)
    name = name.lstrip('.')
    return name
