import re
import urllib.parse as _up
from dataclasses import dataclass

DEFAULT_SCHEME = "https://"
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


@dataclass(frozen=True)
class NormalizedTarget:
    hostname: str
    path_and_query: str
    main_name: str
    tld: str
    full_target: str

    @property
    def dot_count(self) -> int:
        return self.hostname.count(".")


def _split_name(hostname: str):
    labels = hostname.split(".")
    main_name = labels[-2] if len(labels) > 1 else hostname
    return main_name, labels[-1]


def normalize_target(raw: str) -> NormalizedTarget:
    """
    Turn a bare hostname or full URL into a NormalizedTarget.

    Never raises: anything urllib cannot make sense of is kept as a
    lowercased hostname with an empty path.
    """
    text = (raw or "").strip()
    full_target = text if _SCHEME_RE.match(text) else DEFAULT_SCHEME + text

    try:
        parts = _up.urlsplit(full_target)
        hostname = (parts.hostname or "").rstrip(".")
        if not hostname:
            raise ValueError(f"no hostname in {text!r}")
        path_and_query = (parts.path or "/") + (f"?{parts.query}" if parts.query else "")
        path_and_query = path_and_query.lower()
    except ValueError:
        hostname = text.lower()
        path_and_query = ""

    main_name, tld = _split_name(hostname)
    return NormalizedTarget(
        hostname=hostname,
        path_and_query=path_and_query,
        main_name=main_name,
        tld=tld,
        full_target=full_target,
    )
