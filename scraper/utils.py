# utils.py
import json
import re
from pathlib import Path
from typing import Any
from urllib.parse import urlparse


def path_from_url(url: str) -> str:
    parsed = urlparse(url)
    if not parsed.scheme:
        return url
    return parsed.path + (f"?{parsed.query}" if parsed.query else '')


def slugify(value: str) -> str:
    return re.sub(r'[^a-z0-9]+', '-', value.lower()).strip('-')


def ensure_dir(path: Path) -> Path:
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_json(path: Path, data: Any) -> Path:
    path = Path(path)
    ensure_dir(path.parent)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding='utf-8')
    return path


def read_json(path: Path) -> Any:
    return json.loads(Path(path).read_text(encoding='utf-8'))
