"""Generate → preview → watch → auto-fix loop around one session."""

from config.defaults import DEFAULTS
from core.autofix import AutoFixController
from core.client import GenerationClient
from core.orchestrator import GenerationOrchestrator
from core.session import Session
from core.watcher import ErrorPoller, ErrorWatcher


class ArtifactLoop:
    """Wires orchestrator, error watcher, auto-fix controller and poller.

    Without an inspector there is no preview to watch: generations and
    manual fixes still work but nothing is fixed automatically.
    """

    def __init__(self, client=None, inspector=None, detectors=None, on_code=None,
                 on_notify=None, settle_delay=None, poll_interval=None, scheduler=None,
                 max_attempts=None):
        self.session = Session(max_attempts=max_attempts)
        self.orchestrator = GenerationOrchestrator(
            session=self.session,
            client=client or GenerationClient(),
            on_code=on_code,
            on_notify=on_notify,
            settle_delay=settle_delay,
            scheduler=scheduler,
        )
        self.controller = AutoFixController(self.session, self.orchestrator)
        self.watcher = None
        self.poller = None
        if inspector is not None:
            self.watcher = ErrorWatcher(self.session, inspector, self.controller, detectors)
            self.orchestrator.after_generation = self.watcher.check
            self.poller = ErrorPoller(
                self.watcher,
                poll_interval if poll_interval is not None else DEFAULTS["poll_interval"],
            )

    def start(self):
        if self.poller:
            self.poller.start()

    def stop(self):
        if self.poller:
            self.poller.stop(timeout=1.0)

    def generate(self, prompt) -> bool:
        return self.orchestrator.generate(prompt)

    def fix(self, instruction) -> bool:
        return self.orchestrator.fix(instruction)

    def restart(self) -> bool:
        """Start over: transcript, artifact, errors, auto-fix state and history."""
        return self.session.reset()

    def status(self) -> dict:
        with self.session.lock:
            autofix = self.session.autofix_state()
            return {
                "phase": self.session.phase.value,
                "attempts": autofix.attempts,
                "max_attempts": self.session.max_attempts,
                "auto_fixing": autofix.in_progress,
                "has_error": self.session.has_error,
                "last_error": self.session.last_error.message if self.session.last_error else None,
                "history": list(self.session.history),
                "code": self.session.code,
            }
