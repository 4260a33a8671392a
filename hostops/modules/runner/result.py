"""Classification of remote command results.

Every state-changing operation runs its command and hands the outcome to
``classify``. This is the only place stderr is matched against tool output
wording: a failure whose stderr says the resource is already absent (or
already stopped) means the desired state holds, and is reported as a no-op.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from hostops.errors import OperationError

# Phrases meaning "the target is already gone/stopped". Reproduced verbatim
# from the remote tools' output; matching is case-sensitive.
ABSENCE_PHRASES: Tuple[str, ...] = (
    "not found",
    "No such container",
    "no such process",
    "could not find sandbox",
    "isn't running",
    "already stopped",
)

# Per-tool additions on top of ABSENCE_PHRASES.
ABSENCE_VOCABULARY: Dict[str, Tuple[str, ...]] = {
    "systemctl": ("not loaded",),
    # a task that is already running
    "ctr": ("already exists",),
    "crictl": (),
}

# Per-tool phrases meaning "the resource is still in use"; these trigger the
# stop-then-retry path of a removal and are never treated as absence.
IN_USE_VOCABULARY: Dict[str, Tuple[str, ...]] = {
    "ctr": ("has active task",),
    "crictl": ("is not fully stopped", "is still running"),
}


class Outcome(str, Enum):
    SUCCESS = 'success'
    NOOP = 'noop'
    FATAL = 'fatal'


@dataclass(frozen=True)
class Classification:
    outcome: Outcome
    error: Optional[BaseException] = None
    stderr: str = ''
    tool: Optional[str] = None

    @property
    def ok(self) -> bool:
        """True when the desired end state holds (success or no-op)."""
        return self.outcome is not Outcome.FATAL

    @property
    def noop(self) -> bool:
        return self.outcome is Outcome.NOOP

    @property
    def fatal(self) -> bool:
        return self.outcome is Outcome.FATAL

    @property
    def in_use(self) -> bool:
        return self.fatal and any(p in self.stderr for p in in_use_phrases(self.tool))

    def raise_for(self, resource: str, command: str, stage: str, note: str = '') -> None:
        """Raise OperationError if this result is fatal."""
        if not self.fatal:
            return
        message = f"{stage} step failed for {resource}: command '{command}' failed: {self.error}"
        if self.stderr.strip() and self.stderr.strip() not in str(self.error):
            message = f"{message}. Stderr: {self.stderr.strip()}"
        if note:
            message = f"{message} ({note})"
        raise OperationError(
            message,
            resource=resource,
            command=command,
            stage=stage,
            stderr=self.stderr,
        ) from self.error


def absence_phrases(tool: Optional[str] = None) -> Tuple[str, ...]:
    return ABSENCE_PHRASES + ABSENCE_VOCABULARY.get(tool or '', ())


def in_use_phrases(tool: Optional[str] = None) -> Tuple[str, ...]:
    """In-use phrases of one tool, or of every tool when none is given."""
    if tool is not None:
        return IN_USE_VOCABULARY.get(tool, ())
    return tuple(p for phrases in IN_USE_VOCABULARY.values() for p in phrases)


def classify(error: Optional[BaseException], stderr: str = '', tool: Optional[str] = None) -> Classification:
    """Map a command's error and stderr to SUCCESS, NOOP or FATAL."""
    stderr = stderr or ''
    if error is None:
        return Classification(Outcome.SUCCESS, stderr=stderr, tool=tool)
    if any(phrase in stderr for phrase in absence_phrases(tool)):
        return Classification(Outcome.NOOP, error=error, stderr=stderr, tool=tool)
    return Classification(Outcome.FATAL, error=error, stderr=stderr, tool=tool)
