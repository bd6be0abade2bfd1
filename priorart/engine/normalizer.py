# priorart/engine/normalizer.py
"""
Canonical comparison keys for submitted prior-art references.

Patent numbers are compared with punctuation and whitespace stripped
("US-1,234,567" and "us1234567" are the same patent); literature references
are compared as URLs without scheme, ``www.`` or a trailing slash.
"""
import re

from priorart.schemas.enums import ResultType

_SCHEME_RE = re.compile(r"^https?://")
_WWW_RE = re.compile(r"^www\.")
_PATENT_NOISE_RE = re.compile(r"[-/,\s]")


def _strip_literature_once(key: str) -> str:
    key = key.strip()
    key = _SCHEME_RE.sub("", key)
    key = _WWW_RE.sub("", key)
    if key.endswith("/"):
        key = key[:-1]
    return key


def normalize(value: str, result_type: ResultType) -> str:
    key = (value or "").strip().lower()

    if result_type == ResultType.NON_PATENT:
        # repeat until stable so that normalize(normalize(v)) == normalize(v)
        # also holds for inputs like "http://www.x.org//"
        while True:
            stripped = _strip_literature_once(key)
            if stripped == key:
                return key
            key = stripped

    return _PATENT_NOISE_RE.sub("", key)
