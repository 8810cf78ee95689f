from __future__ import annotations

import requests

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"


def http_get_json(url: str, headers: dict | None = None, params: dict | None = None, timeout: float = 15) -> dict:
    r = requests.get(url, headers=headers or {}, params=params or {}, timeout=timeout)
    r.raise_for_status()
    return r.json()


def http_post_form(url: str, data: dict, auth: tuple | None = None, timeout: float = 15) -> dict:
    r = requests.post(url, data=data, auth=auth, timeout=timeout)
    r.raise_for_status()
    return r.json()
