"""Auto-fix controller — turns a newly observed preview error into a fix generation."""

import logging

from config.defaults import DEFAULTS
from core.watcher import missing_module, undefined_reference

log = logging.getLogger("autofix")


def build_fix_instruction(message, toolkit=None):
    """Synthesize the fix instruction for an error message."""
    toolkit = toolkit or DEFAULTS["toolkit"]

    module = missing_module(message)
    if module is not None:
        return (
            f'Fix the import error for module "{module}". If this is an external library, '
            f"remove it and implement the functionality using only {toolkit}. "
            f"If it's a typo, correct it."
        )

    name = undefined_reference(message)
    if name is not None:
        return (
            f'Fix the error: "{name} is not defined". '
            f"Make sure to properly import or define this variable/function."
        )

    return f"Fix this error: {message}"


class AutoFixController:
    """Bounded-retry auto-fix over the session's attempt counter.

    ``reserve`` and ``dispatch`` are split so the error watcher can record
    an error and claim an attempt in one locked step, then run the fix
    generation outside the lock.
    """

    def __init__(self, session, orchestrator=None, toolkit=None):
        self.session = session
        self.orchestrator = orchestrator
        self.toolkit = toolkit

    def reserve(self, message):
        """Claim an attempt for message. Returns the instruction, or None if refused."""
        if not self.session.begin_auto_fix():
            log.info("Auto-fix refused for %r (in progress or budget spent)", message)
            return None
        return build_fix_instruction(message, self.toolkit)

    def dispatch(self, instruction) -> bool:
        """Run a reserved fix. In-progress is cleared whatever the outcome."""
        try:
            return self.orchestrator.fix(instruction, auto=True)
        finally:
            self.session.end_auto_fix()

    def handle(self, message) -> bool:
        instruction = self.reserve(message)
        if instruction is None:
            return False
        return self.dispatch(instruction)
