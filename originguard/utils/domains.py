"""Origin normalization and domain matching utilities."""

from __future__ import annotations

import re

import idna
import tldextract

# Full stop plus the ideographic and fullwidth variants IDNA treats as separators.
_LABEL_SEPARATORS = re.compile("[.。．｡]")

# Offline extractor: uses the bundled public suffix snapshot, never the network.
_extract = tldextract.TLDExtract(suffix_list_urls=())


def _encode_label(label: str) -> str:
    if label.isascii():
        return label.lower()
    try:
        return idna.encode(label, uts46=True).decode("ascii")
    except (idna.IDNAError, UnicodeError):
        return label.lower()


def normalize_origin(origin: str) -> str:
    """
    Convert an origin to its ASCII-compatible (punycode) form.

    - Non-ASCII labels become ``xn--`` A-labels (UTS#46 mapped)
    - ASCII labels are lowercased
    - Labels the IDNA codec rejects pass through unchanged

    The whole string is normalized; scheme/path are not stripped.
    """
    raw = (origin or "").strip()
    if not raw:
        return ""
    return ".".join(_encode_label(label) for label in _LABEL_SEPARATORS.split(raw))


def strip_trailing_dot(host: str) -> str:
    return host[:-1] if host.endswith(".") else host


def ancestor_domains(host: str) -> list[str]:
    """Return the host and each dot-delimited ancestor, most specific first.

    >>> ancestor_domains("a.b.example.com")
    ['a.b.example.com', 'b.example.com', 'example.com', 'com']
    """
    host = strip_trailing_dot(host)
    if not host:
        return []
    labels = host.split(".")
    return [".".join(labels[i:]) for i in range(len(labels))]


def registrable_label(host: str) -> str:
    """Return the registrable domain (domain + public suffix) used for fuzzy matching.

    Falls back to the last two labels when the suffix list does not know the host.
    """
    host = strip_trailing_dot((host or "").strip().lower())
    if not host:
        return ""
    if host.startswith("www.") and len(host) > 4:
        host = host[4:]
    extracted = _extract(host)
    if extracted.domain and extracted.suffix:
        return f"{extracted.domain}.{extracted.suffix}"
    return ".".join(host.split(".")[-2:])
