"""网络工具：注册表 URL 构造与协议校验"""

from __future__ import annotations

from urllib.parse import quote, urlencode, urlparse

from qpm.core.exceptions import ValidationError

_ALLOWED_SCHEMES = frozenset(("http", "https"))


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """只接受 http/https，拒绝 file:// 等协议

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    scheme = urlparse(url).scheme
    if scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(f"不允许的 URL 协议 '{scheme}'{label}: {url}")


def build_url(base: str, *segments: str, query: dict[str, str] | None = None) -> str:
    """拼接 base 与逐段转义的路径，包 id 中的 '/' 不会被当作分隔符"""
    url = base.rstrip("/")
    for seg in segments:
        url += "/" + quote(seg, safe="")
    if query:
        url += "?" + urlencode(query)
    return url
