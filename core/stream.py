"""Stream decoder for newline-delimited JSON generation records.

Wire format, one record per line:

    {"choices": [{"text": "<fragment>"}]}
    {"choices": [{"text": "", "cleanedCode": "<final code>"}]}

The cleaned-code record, when present, is always the last one.
"""

import codecs
import json
import logging

from core.state import FinalCleaned, Fragment

log = logging.getLogger("stream")


def encode_record(text, cleaned_code=None):
    """Encode one record as a UTF-8 line, newline included."""
    choice = {"text": text}
    if cleaned_code is not None:
        choice["cleanedCode"] = cleaned_code
    return (json.dumps({"choices": [choice]}, ensure_ascii=False) + "\n").encode("utf-8")


def _parse_line(line):
    try:
        return json.loads(line)
    except json.JSONDecodeError as e:
        log.warning("Dropping malformed stream line (%s): %.120r", e, line)
        return None


def decode_stream(chunks):
    """Yield parsed JSON records from an iterable of byte chunks.

    Chunks are decoded incrementally so a multi-byte character split across
    two chunks survives, and a line without its newline waits for the next
    chunk. Lines that are not valid JSON are logged and skipped. Exceptions
    raised by the chunk iterator itself (transport failures) propagate.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    pending = ""

    for chunk in chunks:
        if not chunk:
            continue
        pending += decoder.decode(chunk)
        *lines, pending = pending.split("\n")
        for line in lines:
            if not line.strip():
                continue
            record = _parse_line(line)
            if record is not None:
                yield record

    pending += decoder.decode(b"", final=True)
    if pending.strip():
        record = _parse_line(pending)
        if record is not None:
            yield record


def parse_event(record):
    """Turn a decoded record into a Fragment or FinalCleaned event.

    Returns None for records without usable choices.
    """
    if not isinstance(record, dict):
        log.warning("Ignoring non-object stream record: %.120r", record)
        return None
    choices = record.get("choices")
    if not choices or not isinstance(choices, list):
        return None

    first = choices[0] if isinstance(choices[0], dict) else {}
    cleaned = first.get("cleanedCode")
    if cleaned is not None:
        if not isinstance(cleaned, str):
            log.warning("Dropping record with non-string cleanedCode: %.120r", record)
            return None
        return FinalCleaned(text=cleaned)

    texts = [c.get("text") for c in choices if isinstance(c, dict)]
    if any(t is not None and not isinstance(t, str) for t in texts):
        log.warning("Dropping record with non-string text: %.120r", record)
        return None
    return Fragment(text="".join(t for t in texts if t))


def iter_events(chunks):
    """Decode chunks straight into stream events, in arrival order."""
    for record in decode_stream(chunks):
        event = parse_event(record)
        if event is not None:
            yield event
