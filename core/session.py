"""Session state machine shared by manual generations, checks and auto-fixes.

Every guard in the loop (is a generation in flight? is an auto-fix running?
is the attempt budget spent?) is read and acted on under ``Session.lock``
so a scheduled error check can never interleave with a user action between
the check and the state change that follows it.

Phases:

    IDLE -> GENERATING -> AWAITING_ERROR_CHECK -> IDLE
                 \\-> IDLE (failed generation)
    IDLE / AWAITING_ERROR_CHECK -> AUTO_FIXING -> AWAITING_ERROR_CHECK | IDLE
    AUTO_FIXING -> EXHAUSTED (attempt budget spent, until restart or a
                              successful manual fix)
"""

import logging
import threading

from config.defaults import DEFAULTS
from core.state import AutoFixState, CodeArtifact, ErrorObservation, SessionPhase

log = logging.getLogger("session")

_IN_FLIGHT = (SessionPhase.GENERATING, SessionPhase.AUTO_FIXING)


class Session:
    """Transcript, artifact, error and auto-fix state of one user session."""

    def __init__(self, max_attempts=None):
        self.lock = threading.RLock()
        self.max_attempts = (max_attempts if max_attempts is not None
                             else DEFAULTS["max_auto_fix_attempts"])
        self._clear()

    def _clear(self):
        self.phase = SessionPhase.IDLE
        self.transcript = []
        self.artifact = None
        self.last_error = None
        self.has_error = False
        self.attempts = 0
        self.history = []

    # -- read-only views ---------------------------------------------------

    @property
    def is_generating(self) -> bool:
        return self.phase in _IN_FLIGHT

    @property
    def auto_fix_in_progress(self) -> bool:
        return self.phase == SessionPhase.AUTO_FIXING

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts

    @property
    def has_artifact(self) -> bool:
        return self.artifact is not None

    @property
    def code(self) -> str:
        with self.lock:
            return self.artifact.code if self.artifact else ""

    def autofix_state(self) -> AutoFixState:
        with self.lock:
            return AutoFixState(attempts=self.attempts, in_progress=self.auto_fix_in_progress)

    def error_check_allowed(self) -> bool:
        """True when an error check may run right now."""
        with self.lock:
            return self.has_artifact and not self.is_generating and not self.exhausted

    # -- transitions -------------------------------------------------------

    def reset(self) -> bool:
        """Start over. Refused while a generation is in flight (no cancellation)."""
        with self.lock:
            if self.is_generating:
                return False
            self._clear()
            return True

    def begin_generation(self, restart=False) -> bool:
        """Claim the session for a manual generation or fix.

        With ``restart`` the transcript, error state, auto-fix counter and
        history are reset as part of the same transition. The current
        artifact stays until the new generation publishes something.
        """
        with self.lock:
            if self.is_generating:
                return False
            if restart:
                self.transcript = []
                self.last_error = None
                self.has_error = False
                self.attempts = 0
                self.history = []
            self.phase = SessionPhase.GENERATING
            return True

    def begin_auto_fix(self) -> bool:
        """Reserve one automatic fix attempt.

        Refused while anything is in flight or once the budget is spent.
        The attempt counter increments here, before the fix is dispatched.
        """
        with self.lock:
            if self.is_generating or self.exhausted:
                return False
            self.attempts += 1
            self.phase = SessionPhase.AUTO_FIXING
            log.info("Auto-fix attempt %d/%d", self.attempts, self.max_attempts)
            return True

    def end_generation(self, success, reset_attempts=False):
        """Release the session after a generation or fix finished."""
        with self.lock:
            if not self.is_generating:
                return
            if reset_attempts:
                self.attempts = 0
            if self.exhausted:
                self.phase = SessionPhase.EXHAUSTED
            elif success:
                self.phase = SessionPhase.AWAITING_ERROR_CHECK
            else:
                self.phase = SessionPhase.IDLE

    def end_auto_fix(self):
        """Clear a reservation that never reached the orchestrator."""
        with self.lock:
            if self.phase == SessionPhase.AUTO_FIXING:
                self.end_generation(success=False)

    def mark_checked(self):
        with self.lock:
            if self.phase == SessionPhase.AWAITING_ERROR_CHECK:
                self.phase = SessionPhase.IDLE

    # -- data --------------------------------------------------------------

    def publish(self, code):
        """Replace the displayed artifact text."""
        with self.lock:
            if self.artifact is None:
                self.artifact = CodeArtifact()
            self.artifact.code = code

    def snapshot_artifact(self):
        """Current artifact text, or None when nothing has been generated."""
        with self.lock:
            return self.artifact.code if self.artifact else None

    def restore_artifact(self, code):
        with self.lock:
            if code is None:
                self.artifact = None
            else:
                self.publish(code)

    def record_error(self, message) -> bool:
        """Record an observed error. Returns False for a repeat of the last one."""
        with self.lock:
            if self.last_error is not None and self.last_error.message == message:
                return False
            self.last_error = ErrorObservation(message=message)
            self.has_error = True
            return True
