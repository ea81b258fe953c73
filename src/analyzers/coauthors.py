"""
Co-author trailer parsing.

Git credits additional contributors with `Co-authored-by: Name <email>`
trailer lines in the commit message body.
"""

import re
from typing import List

from analyzers.models import CoAuthor, UNKNOWN_CO_AUTHOR_EMAIL

CO_AUTHOR_PREFIX = "Co-authored-by:"
CO_AUTHOR_PATTERN = re.compile(r"(.*?)\s*<([^>]+)>")


def parse_co_author_line(line: str) -> CoAuthor:
    """
    Parse a single trailer line into a co-author identity.

    Lines that do not end in a `Name <email>` form fall back to the
    `unknown@invalid.com` sentinel with the raw trailer text as name.

    Args:
        line (str): Trailer line, with or without surrounding whitespace

    Returns:
        CoAuthor: Parsed identity, email lower-cased
    """
    clean = line.strip()
    if clean.startswith(CO_AUTHOR_PREFIX):
        clean = clean[len(CO_AUTHOR_PREFIX):]
    clean = clean.strip()

    match = CO_AUTHOR_PATTERN.fullmatch(clean)
    if not match:
        return CoAuthor(name=clean, email=UNKNOWN_CO_AUTHOR_EMAIL)

    return CoAuthor(name=match.group(1).strip(), email=match.group(2).strip().lower())


def extract_co_authors(message: str) -> List[CoAuthor]:
    """
    Extract every co-author declared in a commit message.

    Duplicate and empty trailers are all returned; each one is a declaration
    of credit.

    Args:
        message (str): Full commit message

    Returns:
        List[CoAuthor]: Co-authors in message order
    """
    if not message:
        return []

    return [
        parse_co_author_line(line)
        for line in message.split("\n")
        if line.strip().startswith(CO_AUTHOR_PREFIX)
    ]
