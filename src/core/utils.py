"""
Shared utilities for the Slack integration.

This module contains the small helpers the integrations are built on:

- `http_post(url, ...)` — one POST via `httpx.post`, raising on transport
  failures and non-2xx statuses.
- `parse_json_response(response)` — decode a response body into a dict.
- `save_object(path, obj)` — write an arbitrary object to `path`, picking a
  writer from the file suffix (JSON, CSV, pickle, figures).
- `write_json(obj, path)` / `write_csv(rows, path)` — the writers used by
  `save_object`.

`http_post` goes through the module-level `httpx.post` so tests can
monkeypatch it without intercepting a client instance.
"""

from __future__ import annotations

import csv
import json
import logging
import pickle
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

import httpx

logger = logging.getLogger(__name__)

FIGURE_SUFFIXES = (".png", ".jpg", ".jpeg", ".pdf", ".svg")


def http_post(
    url: str,
    *,
    headers: Optional[Mapping[str, str]] = None,
    content: Optional[bytes | str] = None,
    data: Optional[Mapping[str, Any]] = None,
    files: Optional[Mapping[str, Any]] = None,
    timeout: float = 30.0,
) -> httpx.Response:
    """POST to `url` and return the response.

    Exactly one of `content` (raw body), `data` (form fields) or `files`
    (multipart parts) is normally given; `data` and `files` may be combined.

    Raises:
        httpx.HTTPError: On connection failures, timeouts, or a non-2xx status.
    """
    logger.debug("POST %s", url)
    r = httpx.post(
        url,
        headers=dict(headers or {}),
        content=content,
        data=data,
        files=files,
        timeout=timeout,
    )
    r.raise_for_status()
    return r


def parse_json_response(response: httpx.Response) -> Dict[str, Any]:
    """Decode a JSON object from `response`.

    Raises:
        ValueError: If the body is not JSON or the top level is not an object.
    """
    data = json.loads(response.content or b"")
    if not isinstance(data, dict):
        raise ValueError("Top-level JSON is not an object.")
    return data


def write_json(obj: object, path: Path) -> None:
    """Write an object as pretty JSON to `path`, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2, ensure_ascii=False), encoding="utf-8")


def write_csv(rows: Iterable[Sequence[Any]], path: Path, header: Optional[Sequence[str]] = None) -> None:
    """Write rows to a CSV file at `path`, creating parent directories.

    Rows may be sequences or dicts. For dicts the header defaults to the keys
    of the first row.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    rows = list(rows)
    with path.open("w", encoding="utf-8", newline="") as fh:
        if rows and isinstance(rows[0], Mapping):
            fields = list(header or rows[0].keys())
            writer = csv.DictWriter(fh, fieldnames=fields)
            writer.writeheader()
            writer.writerows(rows)
            return
        writer = csv.writer(fh)
        if header:
            writer.writerow(header)
        writer.writerows(rows)


def save_object(path: Path | str, obj: Any) -> Path:
    """Serialize `obj` to `path` using a writer chosen by the file suffix.

    Supported:
      - `.json`: any JSON-serializable object
      - `.csv`: objects with `to_csv(path)` (e.g. DataFrames), or a list of rows
      - `.pkl` / `.pickle`: any picklable object
      - `.png`, `.jpg`, `.jpeg`, `.pdf`, `.svg`: objects with `savefig(path)`

    Returns:
        Path: The written path.

    Raises:
        ValueError: If no writer handles this suffix/object combination.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        write_json(obj, path)
    elif suffix == ".csv" and hasattr(obj, "to_csv"):
        path.parent.mkdir(parents=True, exist_ok=True)
        obj.to_csv(path)
    elif suffix == ".csv" and isinstance(obj, (list, tuple)):
        write_csv(obj, path)
    elif suffix in (".pkl", ".pickle"):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(pickle.dumps(obj))
    elif suffix in FIGURE_SUFFIXES and hasattr(obj, "savefig"):
        path.parent.mkdir(parents=True, exist_ok=True)
        obj.savefig(path)
    else:
        raise ValueError(
            f"No serializer for {type(obj).__name__} with suffix {suffix or '(none)'!r}: {path.name}")
    return path

