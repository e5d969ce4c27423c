"""
Slack integration (thin wrapper over the Web API).

Two operations are exposed:

- `send_message(thread, text, **options)` — post to `chat.postMessage`,
  replying in-thread once the thread has a root timestamp.
- `upload_file(local_path, extra_body)` — the three-step external upload
  (`files.getUploadURLExternal`, raw POST to the returned URL,
  `files.completeUploadExternal`).

`local_file(item)` turns paths, `(name, object)` pairs, or readable objects
into a local file ready for `upload_file`.

Without a token (`SLACK_TOKEN`) every call logs a warning and returns None.
All other failures raise `SlackError`, unless `SLACK_CATCH_ERRORS` is set, in
which case they are logged and the call returns None.
"""

from __future__ import annotations
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import httpx

from src.core import SlackConfig, http_post, parse_json_response, save_object

logger = logging.getLogger(__name__)

NO_ERROR_FIELD = "No error field returned"
MISSING_UPLOAD_FIELDS = "Unexpected error: response missing `upload_url` or `file_id` fields"


class SlackErrorPhase(Enum):
    UPLOAD = "Error when attempting to upload file to Slack"
    SEND = "Error when attempting to send message to Slack thread"
    API = "Error reported by Slack API"
    PARSE = "Error when parsing Slack API response"


class SlackError(Exception):
    """Raised for transport failures and errors reported by the Slack API.

    `error` holds the bare diagnostic (e.g. "channel_not_found"); `phase`
    says where it happened.
    """

    def __init__(self, error: str, phase: Optional[SlackErrorPhase] = None):
        self.error = error
        self.phase = phase
        super().__init__(f"{phase.value}: {error}" if phase else error)


@dataclass
class SlackThread:
    """A conversation in one channel.

    `ts` is the root message timestamp. It is filled in by the first
    successful `send_message` and never changed afterwards.
    """

    channel: Optional[str]
    ts: Optional[str] = None


# ---------- File resolution ----------


@dataclass(frozen=True)
class PathInput:
    path: Union[str, os.PathLike]


@dataclass(frozen=True)
class NamedObjectInput:
    name: str
    obj: Any


@dataclass(frozen=True)
class RawObjectInput:
    obj: Any


FileInput = Union[PathInput, NamedObjectInput, RawObjectInput]


def as_file_input(item: Any) -> FileInput:
    """Classify `item` as a path, a `(name, object)` pair, or a raw object."""
    if isinstance(item, (PathInput, NamedObjectInput, RawObjectInput)):
        return item
    if isinstance(item, tuple) and len(item) == 2:
        name, obj = item
        return NamedObjectInput(str(name), obj)
    if isinstance(item, (str, os.PathLike)):
        return PathInput(item)
    return RawObjectInput(item)


def _read_raw(obj: Any) -> NamedObjectInput:
    # Only a name and a read are required, so remote path types work too.
    name = getattr(obj, "name", None)
    if name is None:
        raise TypeError(f"Cannot derive a file name from {type(obj).__name__}")
    if hasattr(obj, "read_bytes"):
        content = obj.read_bytes()
    else:
        content = obj.read()
    return NamedObjectInput(os.path.basename(str(name)), content)


def _write_named(item: NamedObjectInput, directory: Optional[Union[str, os.PathLike]]) -> str:
    directory = directory if directory is not None else tempfile.mkdtemp()
    local_path = os.path.join(os.fspath(directory), item.name)
    if isinstance(item.obj, (bytes, bytearray)):
        Path(local_path).write_bytes(bytes(item.obj))
    elif isinstance(item.obj, str):
        with open(local_path, "w", encoding="utf-8", newline="") as fh:
            fh.write(item.obj)
    else:
        save_object(local_path, item.obj)
    return local_path


def local_file(item: Any, directory: Optional[Union[str, os.PathLike]] = None) -> str:
    """Return a local file path for `item`, writing a new file when needed.

    - paths (`str` / `os.PathLike`) are returned as-is, without an existence check
    - `(name, object)` pairs are written to `directory/name`: bytes and text
      verbatim, anything else through `save_object`
    - other objects are read (`read_bytes()` or `read()`) and written under
      the basename of their `name`

    `directory` defaults to a new temporary directory, which is left in place.
    """
    f = as_file_input(item)
    if isinstance(f, PathInput):
        return os.fspath(f.path)
    if isinstance(f, RawObjectInput):
        f = _read_raw(f.obj)
    return _write_named(f, directory)


# ---------- HTTP helpers ----------


def _multipart(fields: Mapping[str, Any]) -> Dict[str, tuple]:
    """Build multipart parts (no filename) from form fields."""
    out = {}
    for k, v in fields.items():
        if isinstance(v, bool):
            v = "true" if v else "false"
        elif isinstance(v, (list, dict)):
            v = json.dumps(v)
        elif not isinstance(v, str):
            v = str(v)
        out[str(k)] = (None, v)
    return out


def _fail(config: SlackConfig, err: SlackError, cause: Optional[BaseException] = None) -> None:
    """Raise `err`, or log it and return None when errors are caught."""
    if cause is not None:
        err.__cause__ = cause
    if config.catch_errors:
        logger.error("%s", err, exc_info=err)
        return None
    raise err


def _post_json(url: str, phase: SlackErrorPhase, config: SlackConfig, **kwargs) -> Optional[Dict[str, Any]]:
    try:
        r = http_post(url, timeout=config.timeout_s, **kwargs)
        return parse_json_response(r)
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
        return _fail(config, SlackError(str(e) or type(e).__name__, phase), e)


def _reported_error(response: Mapping[str, Any], strict: bool = True) -> Optional[SlackError]:
    # strict: anything but `ok: true` fails; otherwise only an explicit `ok: false`.
    ok = response.get("ok", True)
    if (strict and ok is not True) or ok is False:
        err = response.get("error")
        return SlackError(str(err) if err is not None else NO_ERROR_FIELD, SlackErrorPhase.API)
    return None


# ---------- Files ----------


def upload_file(
    local_path: Union[str, os.PathLike],
    extra_body: Optional[Mapping[str, Any]] = None,
    *,
    config: Optional[SlackConfig] = None,
) -> Optional[Dict[str, Any]]:
    """Upload a local file and share it according to `extra_body`.

    `extra_body` is sent with both the upload-URL and the completion
    request; its `channels` value becomes the completion's `channel_id`.

    Returns:
        The decoded `files.completeUploadExternal` response, or None when no
        token is configured.

    Raises:
        SlackError: On transport failures, non-JSON replies, `ok: false`
            replies, or a missing `upload_url` / `file_id`.
    """
    config = config if config is not None else SlackConfig.from_env()
    extra = dict(extra_body or {})
    api = config.endpoint("files.getUploadURLExternal")

    if not config.token:
        logger.warning("No Slack token provided; file not sent. api=%s local_path=%s", api, local_path)
        return None
    logger.debug("Uploading slack file api=%s local_path=%s", api, local_path)

    path = Path(local_path)
    length = path.stat().st_size
    form = {**extra, "token": config.token, "filename": path.name, "length": length}
    response = _post_json(api, SlackErrorPhase.UPLOAD, config, files=_multipart(form))
    if response is None:
        return None

    err = _reported_error(response)
    if err is not None:
        return _fail(config, err)

    upload_url = response.get("upload_url")
    file_id = response.get("file_id")
    if not upload_url or not file_id:
        return _fail(config, SlackError(MISSING_UPLOAD_FIELDS, SlackErrorPhase.PARSE))

    try:
        http_post(upload_url, content=path.read_bytes(), timeout=config.timeout_s)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        return _fail(config, SlackError(str(e) or type(e).__name__, SlackErrorPhase.UPLOAD), e)

    api = config.endpoint("files.completeUploadExternal")
    form = {**extra, "token": config.token, "files": json.dumps([{"id": file_id}])}
    if extra.get("channels") is not None:
        form["channel_id"] = extra["channels"]
    response = _post_json(api, SlackErrorPhase.UPLOAD, config, files=_multipart(form))
    if response is None:
        return None

    err = _reported_error(response)
    if err is not None:
        return _fail(config, err)

    logger.debug("Slack responded %s", response)
    return response


def post_file(
    thread: SlackThread,
    item: Any,
    *,
    comment: Optional[str] = None,
    directory: Optional[Union[str, os.PathLike]] = None,
    config: Optional[SlackConfig] = None,
) -> Optional[Dict[str, Any]]:
    """Resolve `item` with `local_file` and upload it into `thread`."""
    extra: Dict[str, Any] = {}
    if thread.channel:
        extra["channels"] = thread.channel
    if thread.ts is not None:
        extra["thread_ts"] = thread.ts
    if comment:
        extra["initial_comment"] = comment
    return upload_file(local_file(item, directory), extra, config=config)


# ---------- Messages ----------


def send_message(
    thread: SlackThread,
    text: str,
    /,
    *,
    config: Optional[SlackConfig] = None,
    **options: Any,
) -> Optional[Dict[str, Any]]:
    """Post `text` to `thread.channel`, as a reply when `thread.ts` is set.

    Extra keyword arguments are sent as `chat.postMessage` fields (e.g.
    `blocks`, `unfurl_links`); `channel`, `text` and `thread_ts` always win.
    On the first successful send of a thread without a `ts`, the returned
    `ts` is stored on the thread.

    Returns:
        The decoded response, or None when no token or channel is configured.

    Raises:
        SlackError: On transport failures, non-JSON replies, or `ok: false`.
    """
    config = config if config is not None else SlackConfig.from_env()
    data: Dict[str, Any] = dict(options)
    data["channel"] = thread.channel
    data["text"] = text
    if thread.ts is not None:
        data["thread_ts"] = thread.ts
    data_str = json.dumps(data)
    api = config.endpoint("chat.postMessage")

    if not config.token:
        logger.warning("No Slack token provided; message not sent. api=%s data=%s", api, data_str)
        return None
    if not thread.channel:
        logger.warning("No Slack channel configured; message not sent. api=%s data=%s", api, data_str)
        return None
    logger.debug("Sending slack message api=%s data=%s", api, data_str)

    headers = {
        "Authorization": f"Bearer {config.token}",
        "Content-type": "application/json; charset=utf-8",
    }
    response = _post_json(api, SlackErrorPhase.SEND, config, headers=headers, content=data_str)
    if response is None:
        return None
    logger.debug("Slack responded %s", response)

    err = _reported_error(response, strict=False)
    if err is not None:
        return _fail(config, err)

    if thread.ts is None and response.get("ts") is not None:
        thread.ts = response["ts"]
    return response


def post_message(
    text: str,
    /,
    channel: Optional[str] = None,
    *,
    config: Optional[SlackConfig] = None,
    **options: Any,
) -> Optional[Dict[str, Any]]:
    """Send a one-off message to `channel` (default: `SLACK_DEFAULT_CHANNEL`)."""
    config = config if config is not None else SlackConfig.from_env()
    thread = SlackThread(channel=channel or config.default_channel)
    return send_message(thread, text, config=config, **options)
