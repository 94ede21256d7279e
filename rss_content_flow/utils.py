from __future__ import annotations

import html
import re


def normalize_whitespace(value: str) -> str:
    return re.sub(r"\s+", " ", value or "").strip()


def strip_html(value: str) -> str:
    text = re.sub(r"<[^>]+>", " ", value or "")
    text = html.unescape(text)
    return normalize_whitespace(text)


def preview(text: str, max_chars: int = 200) -> str:
    cleaned = normalize_whitespace(text)
    if len(cleaned) <= max_chars:
        return cleaned
    return cleaned[:max_chars] + "..."


def paragraphs(text: str) -> list[str]:
    blocks = re.split(r"\n\s*\n", (text or "").strip())
    return [normalize_whitespace(block) for block in blocks if block.strip()]


def env_name(secret_name: str) -> str:
    return re.sub(r"[^A-Za-z0-9]+", "_", secret_name).strip("_").upper()
