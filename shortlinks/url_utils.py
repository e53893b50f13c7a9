import re
from urllib.parse import urlsplit

from pydantic import HttpUrl, TypeAdapter, ValidationError

from shortlinks.models import TITLE_MAX_LENGTH, URL_MAX_LENGTH

SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
DEFAULT_SCHEME = "https://"
FALLBACK_TITLE = "Link pendek"

_http_url = TypeAdapter(HttpUrl)


class InvalidURL(ValueError):
    message = "URL tidak valid."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class EmptyURL(InvalidURL):
    message = "URL tidak boleh kosong."


class URLTooLong(InvalidURL):
    message = "URL terlalu panjang."


class SelfReferentialURL(InvalidURL):
    message = "Tidak bisa menyingkat link ke domain layanan ini sendiri."


def normalize_url(raw: str | None) -> str:
    url = (raw or "").strip()
    if not url:
        raise EmptyURL()
    if not SCHEME_RE.match(url):
        url = DEFAULT_SCHEME + url
    if len(url) > URL_MAX_LENGTH:
        raise URLTooLong()
    try:
        parsed = _http_url.validate_python(url)
    except ValidationError:
        raise InvalidURL()
    if not parsed.host:
        raise InvalidURL()
    return url


def get_hostname(url: str) -> str | None:
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return None
    # "example.com." is the same host as "example.com"
    return (hostname or "").rstrip(".") or None


def ensure_not_self_referential(url: str, base_url: str) -> None:
    target = get_hostname(url)
    own = get_hostname(base_url)
    if target and own and target == own:
        raise SelfReferentialURL()


def default_title(url: str, title: str | None) -> str:
    title = (title or "").strip()
    if not title:
        hostname = get_hostname(url)
        title = f"Link ke {hostname}" if hostname else FALLBACK_TITLE
    return title[:TITLE_MAX_LENGTH].rstrip()


def prepare_link(raw_url: str | None, raw_title: str | None, base_url: str) -> tuple[str, str]:
    """Validate a shorten request; returns the normalized URL and the title to store."""
    url = normalize_url(raw_url)
    ensure_not_self_referential(url, base_url)
    return url, default_title(url, raw_title)
