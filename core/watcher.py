"""Error watcher — inspects the rendered preview and feeds new errors to auto-fix."""

import logging
import threading
from abc import ABC, abstractmethod

from config.defaults import DEFAULTS
from config.rules import (
    DIAGNOSTIC_NOISE,
    DIAGNOSTIC_SIGNALS,
    MISSING_MODULE_PATTERNS,
    UNDEFINED_REFERENCE_PATTERN,
    UNDEFINED_REFERENCE_TRIGGER,
)
from core.errors import PreviewUnavailable

log = logging.getLogger("watcher")


def missing_module(text):
    """Return the module identifier of a missing-module error, or None.

    Returns "" when the signature is present but no quoted identifier follows.
    """
    for trigger, pattern in MISSING_MODULE_PATTERNS:
        if trigger in text:
            match = pattern.search(text)
            if match:
                return match.group(1)
            return ""
    return None


def undefined_reference(text):
    """Return the identifier of an undefined-reference error, or None."""
    if UNDEFINED_REFERENCE_TRIGGER not in text:
        return None
    match = UNDEFINED_REFERENCE_PATTERN.search(text)
    return match.group(1) if match else ""


def match_known_error(text, extra_patterns=()):
    """Normalise text to a known error message, or "" if nothing matches."""
    module = missing_module(text)
    if module:
        return f"Cannot find module '{module}'"
    name = undefined_reference(text)
    if name:
        return f"{name} is not defined"
    for pattern in extra_patterns:
        match = pattern.search(text)
        if match:
            return match.group(0).strip()
    return ""


class ErrorDetector(ABC):
    """Strategy that extracts one error message from a preview snapshot."""

    @abstractmethod
    def detect(self, snapshot) -> str:
        """Return the error message, or "" when the preview looks healthy."""


class StructuredErrorDetector(ErrorDetector):
    """Uses diagnostics the browser reported directly (page errors, console errors)."""

    def detect(self, snapshot) -> str:
        for diag in snapshot.diagnostics:
            if any(n.lower() in diag.lower() for n in DIAGNOSTIC_NOISE):
                continue
            if not any(s in diag for s in DIAGNOSTIC_SIGNALS):
                continue
            return match_known_error(diag) or diag.strip()
        return ""


class DomPatternDetector(ErrorDetector):
    """Pattern-matches the rendered document.

    Order: missing module, undefined reference, any extra patterns, then the
    first element the sandbox flagged as an error.
    """

    def __init__(self, extra_patterns=()):
        self.extra_patterns = list(extra_patterns)

    def detect(self, snapshot) -> str:
        message = match_known_error(snapshot.body_text or "", self.extra_patterns)
        if message:
            return message
        if snapshot.error_texts:
            return snapshot.error_texts[0].strip() or "Unknown error"
        return ""


def default_detectors():
    return [StructuredErrorDetector(), DomPatternDetector()]


def detect_error(snapshot, detectors=None):
    """Run detectors in order; the first non-empty message wins."""
    for detector in detectors if detectors is not None else default_detectors():
        message = detector.detect(snapshot)
        if message:
            return message
    return ""


class ErrorWatcher:
    """Checks the preview for errors and hands new ones to the auto-fix controller.

    A check does nothing while a generation or auto-fix is in flight, or
    once the attempt budget is spent. An error identical to the last one
    recorded is ignored.
    """

    def __init__(self, session, inspector, controller, detectors=None):
        self.session = session
        self.inspector = inspector
        self.controller = controller
        self.detectors = detectors if detectors is not None else default_detectors()

    def detect(self, snapshot) -> str:
        return detect_error(snapshot, self.detectors)

    def check(self):
        """Run one check. Returns the dispatched error message, or None."""
        if not self.session.error_check_allowed():
            return None

        code = self.session.code
        try:
            snapshot = self.inspector.snapshot(code)
        except PreviewUnavailable as e:
            log.debug("Preview not readable, treating as healthy: %s", e)
            return None
        finally:
            self.session.mark_checked()

        message = self.detect(snapshot)
        if not message:
            return None

        with self.session.lock:
            if not self.session.error_check_allowed():
                return None
            # The artifact changed while the preview rendered; the error is stale.
            if self.session.code != code:
                log.debug("Artifact replaced during check, dropping: %s", message)
                return None
            if not self.session.record_error(message):
                log.debug("Same error as last check, not re-dispatching: %s", message)
                return None
            log.info("Preview error: %s", message)
            instruction = self.controller.reserve(message)

        if instruction is None:
            return None
        self.controller.dispatch(instruction)
        return message


class ErrorPoller:
    """Runs ErrorWatcher.check on a fixed interval from a daemon thread."""

    def __init__(self, watcher, interval=None):
        self.watcher = watcher
        self.interval = interval if interval is not None else DEFAULTS["poll_interval"]
        self._stop = threading.Event()
        self._thread = None

    def start(self):
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="error-poller", daemon=True)
        self._thread.start()

    def stop(self, timeout=None):
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None

    def _loop(self):
        while not self._stop.wait(self.interval):
            if self.watcher.session.error_check_allowed():
                self.watcher.check()
