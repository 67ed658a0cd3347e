"""Code accumulator — folds stream events into the current-best code."""

from core.errors import StreamProtocolError
from core.state import FinalCleaned, Fragment


class CodeAccumulator:
    """Builds one generation's code from its stream events.

    Fragments are appended in arrival order and the buffer is republished
    after each one so the preview can render progressively. A FinalCleaned
    event replaces the buffer wholesale and closes the generation.
    """

    def __init__(self, on_update=None):
        self.on_update = on_update
        self.buffer = ""
        self.fragments = 0
        self.finalized = False

    def feed(self, event) -> str:
        if self.finalized:
            raise StreamProtocolError("Stream event received after the cleaned code")

        if isinstance(event, FinalCleaned):
            self.buffer = event.text
            self.finalized = True
            if not event.text:
                return self.buffer
        elif isinstance(event, Fragment):
            if not event.text:
                return self.buffer
            self.buffer += event.text
            self.fragments += 1
        else:
            raise TypeError(f"Unexpected stream event: {event!r}")

        if self.on_update:
            self.on_update(self.buffer)
        return self.buffer

    def consume(self, events) -> str:
        """Feed every event and return the final code."""
        for event in events:
            self.feed(event)
        return self.buffer

    @property
    def started(self) -> bool:
        """True once anything has been published over the previous code."""
        return self.fragments > 0 or self.finalized
