"""Claude API client for streamed component generation."""

import logging
import os
import time

import anthropic

from config.defaults import DEFAULTS

log = logging.getLogger("llm")


def get_client():
    """Return an Anthropic client. Raises if no API key is set."""
    api_key = os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        raise RuntimeError(
            "ANTHROPIC_API_KEY environment variable is not set. "
            "Get a key at https://console.anthropic.com/ and run:\n"
            "  export ANTHROPIC_API_KEY='your-key-here'"
        )
    return anthropic.Anthropic(api_key=api_key)


def stream_completion(system_prompt, user_message, model=None, max_tokens=None,
                      temperature=None):
    """Stream Claude's answer as text deltas.

    The request is retried once if it fails before the first delta; once
    text has been yielded a failure propagates, since replaying would
    duplicate output already sent downstream.
    """
    client = get_client()
    yielded = False

    for attempt in range(2):
        try:
            with client.messages.stream(
                model=model or DEFAULTS["model"],
                max_tokens=max_tokens or DEFAULTS["max_tokens"],
                temperature=temperature if temperature is not None else DEFAULTS["temperature"],
                system=system_prompt,
                messages=[{"role": "user", "content": user_message}],
            ) as stream:
                for text in stream.text_stream:
                    if text:
                        yielded = True
                        yield text
                final = stream.get_final_message()

            if final.stop_reason == "max_tokens":
                log.warning("Completion hit the token limit; the component may be truncated")
            return

        except anthropic.APIError as e:
            if attempt == 0 and not yielded:
                log.warning("Claude request failed, retrying once: %s", e)
                time.sleep(2)
                continue
            raise
