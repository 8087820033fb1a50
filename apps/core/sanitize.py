"""
Input sanitization for submitted post content.

Titles and excerpts are plain text: all markup is stripped. Content keeps a
post-safe subset of HTML (no scripts, styles, frames or event handlers).
"""

import html
import unicodedata

import bleach

POST_ALLOWED_TAGS = [
    'a', 'abbr', 'b', 'blockquote', 'br', 'caption', 'cite', 'code', 'del',
    'div', 'em', 'figcaption', 'figure', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'hr', 'i', 'img', 'ins', 'li', 'ol', 'p', 'pre', 'q', 's', 'span',
    'strong', 'sub', 'sup', 'table', 'tbody', 'td', 'tfoot', 'th', 'thead',
    'tr', 'u', 'ul',
]

POST_ALLOWED_ATTRIBUTES = {
    '*': ['class', 'id', 'title'],
    'a': ['href', 'rel', 'target'],
    'img': ['src', 'alt', 'width', 'height', 'loading'],
    'td': ['colspan', 'rowspan'],
    'th': ['colspan', 'rowspan', 'scope'],
}

POST_ALLOWED_PROTOCOLS = ['http', 'https', 'mailto']

MAX_STRIP_PASSES = 5


def _strip_control_chars(text):
    return "".join(ch for ch in text if unicodedata.category(ch)[0] != "C" or ch in '\n\r\t')


def _strip_markup(text):
    """
    Remove every tag, including tags spelled with character references.

    Entities are decoded before bleach strips tags, and the pass repeats
    until the text is stable, so the result never decodes into markup and
    cleaning it again changes nothing.
    """
    for _ in range(MAX_STRIP_PASSES):
        stripped = bleach.clean(html.unescape(text), tags=[], strip=True)
        # bleach escapes bare ampersands and angle brackets; plain text keeps them
        stripped = _strip_control_chars(html.unescape(stripped))
        if stripped == text:
            break
        text = stripped
    return text


def sanitize_text(text):
    """Strip all HTML from a single-line text value."""
    if not text:
        return ''
    text = _strip_markup(str(text)).replace('\n', ' ').replace('\r', ' ').replace('\t', ' ')
    return " ".join(text.split())


def sanitize_textarea(text):
    """Strip all HTML but keep line breaks."""
    if not text:
        return ''
    return _strip_markup(str(text)).strip()


def sanitize_post_content(text):
    """Keep only post-safe markup."""
    if not text:
        return ''
    text = text.replace('\x00', '')
    return bleach.clean(
        str(text),
        tags=POST_ALLOWED_TAGS,
        attributes=POST_ALLOWED_ATTRIBUTES,
        protocols=POST_ALLOWED_PROTOCOLS,
        strip=True,
        strip_comments=False,  # block editor delimiters live in comments
    )
