"""Generation orchestrator — runs initial and fix generations against the endpoint."""

import logging
import threading

from config.defaults import DEFAULTS
from core.accumulator import CodeAccumulator
from core.client import GenerationClient
from core.errors import ArtifactsError, GenerationError
from core.session import Session
from core.state import GenerationRequest, Message
from core.stream import iter_events

log = logging.getLogger("orchestrator")


def start_timer(delay, fn):
    """Run fn once after delay seconds on a daemon thread."""
    timer = threading.Timer(delay, fn)
    timer.daemon = True
    timer.start()
    return timer


class GenerationOrchestrator:
    """Owns the transcript and drives one streamed generation at a time.

    Manual fixes and automatic fixes share the session lock: a call made
    while another generation is in flight returns False and changes nothing.
    Failures never escape a generation; they are logged and reported through
    ``on_notify``.
    """

    def __init__(self, session=None, client=None, on_code=None, on_notify=None,
                 settle_delay=None, scheduler=None):
        self.session = session or Session()
        self.client = client or GenerationClient()
        self.on_code = on_code
        self.on_notify = on_notify
        self.settle_delay = settle_delay if settle_delay is not None else DEFAULTS["settle_delay"]
        self.scheduler = scheduler or start_timer
        # Called once the settle delay has elapsed after a successful generation.
        self.after_generation = None

    def generate(self, prompt) -> bool:
        """Start a new transcript from prompt and stream an initial generation."""
        prompt = (prompt or "").strip()
        if not prompt:
            raise ValueError("Prompt must not be empty")

        if not self.session.begin_generation(restart=True):
            log.info("Generation already in flight, ignoring prompt")
            return False

        with self.session.lock:
            self.session.transcript.append(Message(role="user", content=prompt))

        return self._run(GenerationRequest(prompt=prompt))

    def fix(self, instruction, auto=False) -> bool:
        """Ask for a modified version of the current artifact.

        ``auto`` marks a dispatch from the auto-fix controller, which has
        already reserved the session.
        """
        instruction = (instruction or "").strip()
        if not instruction:
            raise ValueError("Fix instruction must not be empty")
        if not self.session.has_artifact:
            raise ValueError("Nothing to fix: generate an artifact first")

        if auto:
            if not self.session.auto_fix_in_progress:
                raise RuntimeError("Automatic fix dispatched without a reservation")
        elif not self.session.begin_generation():
            log.info("Generation already in flight, ignoring fix request")
            return False

        with self.session.lock:
            self.session.transcript.append(Message(role="user", content=instruction))
            request = GenerationRequest(
                prompt=instruction,
                messages=tuple(self.session.transcript),
                current_code=self.session.code,
            )

        return self._run(request, manual_fix=not auto)

    def _run(self, request, manual_fix=False) -> bool:
        accumulator = CodeAccumulator(on_update=self._publish)
        previous = self.session.snapshot_artifact()
        success = False
        try:
            chunks = self.client.open(request)
            code = accumulator.consume(iter_events(chunks))
            if not code:
                # Whatever was streamed is not code, put the last artifact back.
                self.session.restore_artifact(previous)
                raise GenerationError("The endpoint returned no code")
            self._commit(request, code)
            success = True
        except ArtifactsError as e:
            log.error("Generation failed (%s mode): %s", request.mode, e)
            if accumulator.started and accumulator.buffer:
                log.warning("Partial output stays visible after the failure")
            self._notify(f"Failed to generate code: {e}")
        except Exception as e:
            log.exception("Unexpected error during generation (%s mode)", request.mode)
            self._notify(f"Failed to generate code: {e}")
        finally:
            self.session.end_generation(success, reset_attempts=success and manual_fix)

        if success:
            self._schedule_check()
        return success

    def _commit(self, request, code):
        with self.session.lock:
            self.session.transcript.append(Message(role="assistant", content=code))
            if request.mode == "fix":
                self.session.has_error = False
                self.session.history.append(request.prompt)
        log.info("Generation complete (%s mode, %d chars)", request.mode, len(code))

    def _publish(self, code):
        self.session.publish(code)
        if self.on_code:
            self.on_code(code)

    def _notify(self, text):
        if self.on_notify:
            self.on_notify(text)

    def _schedule_check(self):
        if self.after_generation is None:
            return
        self.scheduler(self.settle_delay, self.after_generation)
