"""Parsers for the session logs of each supported coding assistant.

Every parser takes one unit of input (the text of a log file, or one decoded
JSON document) and returns a ParseResult. Lines and documents that cannot be
decoded are skipped; a parser never raises for malformed data.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Optional

from .models import ROLES, MessageData, ParseResult, SessionData, Usage

logger = logging.getLogger(__name__)

# Errors that mean "this line/document is malformed, skip it"
MALFORMED = (AttributeError, KeyError, TypeError, ValueError, OverflowError, OSError)


def parse_timestamp(value) -> int:
    """Normalize an epoch-ms number or an ISO-8601 string to epoch ms.

    Raises ValueError for timestamps that cannot be shown as a local date.
    """
    if isinstance(value, bool):
        raise TypeError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        result = int(value)
    elif isinstance(value, str):
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
        result = int(round(ts.timestamp() * 1000))
    else:
        raise TypeError(f"Invalid timestamp: {value!r}")

    try:
        local_datetime(result)
    except (OSError, OverflowError, ValueError) as e:
        raise ValueError(f"Timestamp out of range: {value!r}") from e
    return result


def local_datetime(timestamp: int) -> datetime:
    """Convert epoch ms to a naive local datetime."""
    return datetime.fromtimestamp(timestamp / 1000)


def in_year(timestamp: int, year: Optional[int]) -> bool:
    """True when no year filter is set or the local year matches."""
    return year is None or local_datetime(timestamp).year == year


def _iter_json_lines(text: str):
    for line in text.splitlines():
        line = line.strip()
        if line:
            yield line


def _text(value) -> Optional[str]:
    """Return value if it is a string, else None."""
    return value if isinstance(value, str) else None


def _optional_int(value) -> Optional[int]:
    if value is None:
        return None
    return int(value)


# ============ Pi (session line followed by message lines) ============


def _pi_usage(raw) -> Optional[Usage]:
    if not isinstance(raw, dict):
        return None
    cost = raw.get("cost")
    return Usage(
        input_tokens=int(raw.get("input") or 0),
        output_tokens=int(raw.get("output") or 0),
        cache_read_tokens=_optional_int(raw.get("cacheRead")),
        cache_write_tokens=_optional_int(raw.get("cacheWrite")),
        cost=float(cost["total"]) if isinstance(cost, dict) and cost.get("total") is not None else None,
    )


def parse_pi_file(text: str, year: Optional[int] = None) -> ParseResult:
    """Parse a Pi agent session file.

    The session line defines the file's session. If it falls outside the
    requested year the whole file is discarded.
    """
    session: Optional[SessionData] = None
    messages: list[MessageData] = []

    for line in _iter_json_lines(text):
        try:
            data = json.loads(line)
            kind = data.get("type")

            if kind == "session":
                timestamp = parse_timestamp(data["timestamp"])
                if not in_year(timestamp, year):
                    logger.debug("Skipping pi session outside %s", year)
                    return ParseResult()
                session = SessionData(
                    id=str(data["id"]),
                    timestamp=timestamp,
                    cwd=_text(data.get("cwd")) or "",
                    provider=_text(data.get("provider")) or "",
                    model_id=_text(data.get("modelId")) or "",
                    source="pi",
                )
            elif kind == "message":
                raw = data["message"]
                timestamp = parse_timestamp(data["timestamp"])
                if not in_year(timestamp, year):
                    continue
                role = raw["role"]
                if role not in ROLES:
                    continue
                messages.append(
                    MessageData(
                        session_id=session.id if session else "",
                        role=role,
                        timestamp=timestamp,
                        source="pi",
                        provider=_text(raw.get("provider")),
                        model_id=_text(raw.get("model")),
                        usage=_pi_usage(raw.get("usage")),
                    )
                )
        except MALFORMED:
            continue

    return ParseResult(sessions=[session] if session else [], messages=messages)


# ============ Claude Code (every line carries its session id) ============


def _claude_usage(raw, cost) -> Optional[Usage]:
    if not isinstance(raw, dict):
        return None
    return Usage(
        input_tokens=int(raw.get("input_tokens") or 0),
        output_tokens=int(raw.get("output_tokens") or 0),
        cache_read_tokens=_optional_int(raw.get("cache_read_input_tokens")),
        cache_write_tokens=_optional_int(raw.get("cache_creation_input_tokens")),
        cost=float(cost) if cost is not None else None,
    )


def parse_claude_file(text: str, year: Optional[int] = None) -> ParseResult:
    """Parse a Claude Code project transcript.

    A transcript may touch several sessions. Each session is registered by
    the first user/assistant line that names it.
    """
    sessions: dict[str, SessionData] = {}
    messages: list[MessageData] = []

    for line in _iter_json_lines(text):
        try:
            data = json.loads(line)
            kind = data.get("type")
            session_id = data.get("sessionId")
            if kind not in ("user", "assistant") or not isinstance(session_id, str) or not session_id:
                continue

            timestamp = parse_timestamp(data["timestamp"])
            if not in_year(timestamp, year):
                continue

            message = data.get("message")
            if not isinstance(message, dict):
                message = {}
            model = _text(message.get("model"))

            if session_id not in sessions:
                sessions[session_id] = SessionData(
                    id=session_id,
                    timestamp=timestamp,
                    cwd=_text(data.get("cwd")) or "",
                    provider="anthropic",
                    model_id=model or "claude",
                    source="claude",
                )

            messages.append(
                MessageData(
                    session_id=session_id,
                    role=kind,
                    timestamp=timestamp,
                    source="claude",
                    provider="anthropic",
                    model_id=model,
                    usage=_claude_usage(message.get("usage"), data.get("costUSD")),
                )
            )
        except MALFORMED:
            continue

    return ParseResult(sessions=list(sessions.values()), messages=messages)


# ============ Codex CLI (session_meta, response_item, event_msg) ============


def _attach_token_count(messages: list[MessageData], raw) -> None:
    """Give the latest assistant message without usage the reported tokens."""
    if not isinstance(raw, dict):
        return
    for message in reversed(messages):
        if message.role == "assistant" and message.usage is None:
            message.usage = Usage(
                input_tokens=int(raw.get("input_tokens") or 0),
                output_tokens=int(raw.get("output_tokens") or 0),
                cache_read_tokens=_optional_int(raw.get("cached_input_tokens")),
            )
            return


def parse_codex_file(text: str, year: Optional[int] = None) -> ParseResult:
    """Parse a Codex CLI rollout file.

    Token counts arrive as separate events after the turn they describe and
    are attached to the most recent assistant message still lacking usage.
    """
    session: Optional[SessionData] = None
    messages: list[MessageData] = []
    model_id = "codex"

    for line in _iter_json_lines(text):
        try:
            data = json.loads(line)
            kind = data.get("type")
            payload = data.get("payload")
            if not isinstance(payload, dict):
                continue

            if kind == "session_meta":
                timestamp = parse_timestamp(data["timestamp"])
                if not in_year(timestamp, year):
                    logger.debug("Skipping codex session outside %s", year)
                    return ParseResult()
                session = SessionData(
                    id=str(payload["id"]),
                    timestamp=timestamp,
                    cwd=_text(payload.get("cwd")) or "",
                    provider=_text(payload.get("model_provider")) or "openai",
                    model_id=model_id,
                    source="codex",
                )
            elif kind == "turn_context":
                if _text(payload.get("model")):
                    model_id = payload["model"]
            elif kind == "response_item":
                role = payload.get("role")
                if role not in ROLES:
                    continue
                timestamp = parse_timestamp(data["timestamp"])
                if not in_year(timestamp, year):
                    continue
                messages.append(
                    MessageData(
                        session_id=session.id if session else "",
                        role=role,
                        timestamp=timestamp,
                        source="codex",
                        provider=(session.provider if session else None) or "openai",
                        model_id=model_id,
                    )
                )
            elif kind == "event_msg" and payload.get("type") == "token_count":
                info = payload.get("info")
                if isinstance(info, dict):
                    _attach_token_count(messages, info.get("last_token_usage"))
        except MALFORMED:
            continue

    return ParseResult(sessions=[session] if session else [], messages=messages)


# ============ OpenCode (one JSON document per session / message) ============


def parse_opencode_session(document, year: Optional[int] = None) -> ParseResult:
    """Parse one OpenCode session document."""
    try:
        timestamp = parse_timestamp(document["time"]["created"])
        if not in_year(timestamp, year):
            return ParseResult()
        session = SessionData(
            id=str(document["id"]),
            timestamp=timestamp,
            cwd=_text(document.get("directory")) or "",
            provider="opencode",
            model_id="opencode",
            source="opencode",
        )
    except MALFORMED:
        return ParseResult()
    return ParseResult(sessions=[session])


def _opencode_usage(tokens, cost) -> Optional[Usage]:
    if not isinstance(tokens, dict):
        return None
    cache = tokens.get("cache")
    if not isinstance(cache, dict):
        cache = {}
    return Usage(
        input_tokens=int(tokens.get("input") or 0),
        output_tokens=int(tokens.get("output") or 0),
        cache_read_tokens=_optional_int(cache.get("read")),
        cache_write_tokens=_optional_int(cache.get("write")),
        cost=float(cost) if cost is not None else None,
    )


def parse_opencode_message(document, year: Optional[int] = None) -> ParseResult:
    """Parse one OpenCode message document."""
    try:
        timestamp = parse_timestamp(document["time"]["created"])
        if not in_year(timestamp, year):
            return ParseResult()
        role = document["role"]
        if role not in ROLES:
            return ParseResult()
        message = MessageData(
            session_id=_text(document.get("sessionID")) or "",
            role=role,
            timestamp=timestamp,
            source="opencode",
            provider=_text(document.get("providerID")),
            model_id=_text(document.get("modelID")),
            usage=_opencode_usage(document.get("tokens"), document.get("cost")),
        )
    except MALFORMED:
        return ParseResult()
    return ParseResult(messages=[message])


# Line-oriented formats, keyed by source
LOG_PARSERS = {
    "pi": parse_pi_file,
    "claude": parse_claude_file,
    "codex": parse_codex_file,
}

# Document trees of the OpenCode storage directory
DOCUMENT_PARSERS = {
    "session": parse_opencode_session,
    "message": parse_opencode_message,
}
