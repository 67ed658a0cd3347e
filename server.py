#!/usr/bin/env python3
"""Artifacts - generation endpoint streaming React components as JSON lines."""

import logging
import os

from flask import Flask, Response, jsonify, request

from config.prompts import build_conversation, is_fix_request
from core.cleanup import clean_completion
from core.preview import build_sandbox_files, render_host_page
from core.stream import encode_record
from utils.llm import stream_completion

app = Flask(__name__)
log = logging.getLogger("server")

_STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


def _records(first, deltas):
    """Yield one fragment record per delta, then the cleaned code if needed."""
    buffer = ""
    try:
        if first:
            buffer += first
            yield encode_record(first)
        for text in deltas:
            buffer += text
            yield encode_record(text)
    except Exception:
        # Ending the response early is how the client learns the stream broke.
        log.exception("Backend stream failed after %d chars", len(buffer))
        raise

    cleaned = clean_completion(buffer)
    if cleaned is not None:
        yield encode_record("", cleaned_code=cleaned)


@app.route("/api/generateCode", methods=["POST"])
def api_generate_code():
    data = request.get_json(silent=True)
    if not data or not str(data.get("prompt") or "").strip():
        return jsonify({"error": "Missing prompt"}), 400

    prompt = data["prompt"]
    messages = data.get("messages") or []
    current_code = data.get("currentCode")
    system_prompt, user_message = build_conversation(prompt, messages, current_code)
    log.info("Generating (%s mode)", "fix" if is_fix_request(messages, current_code) else "initial")

    # Pull the first delta here so backend failures still map to a 500.
    try:
        deltas = stream_completion(system_prompt, user_message)
        first = next(deltas, "")
    except Exception:
        log.exception("Error in generateCode")
        return jsonify({"error": "Failed to generate code"}), 500

    return Response(_records(first, deltas), mimetype="text/event-stream",
                    headers=_STREAM_HEADERS)


@app.route("/api/sandbox", methods=["POST"])
def api_sandbox():
    """Return the sandbox file set for a component, or its standalone host page."""
    data = request.get_json(silent=True)
    if not data or not str(data.get("code") or "").strip():
        return jsonify({"error": "Missing code"}), 400
    if data.get("format") == "html":
        return Response(render_host_page(data["code"]), mimetype="text/html")
    return jsonify({"files": build_sandbox_files(data["code"])})


@app.route("/api/health")
def api_health():
    return jsonify({"status": "ok"})


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(message)s")
    port = int(os.environ.get("PORT", 5001))
    print(f"Artifacts endpoint running at http://localhost:{port}/api/generateCode")
    app.run(debug=False, port=port, threaded=True)
