from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from panikkar.models.flow_type import FlowType
from panikkar.models.incoming import IncomingMessage, MessageKind, SELECTION_KINDS
from panikkar.models.session import ConversationSession

TEXT = (MessageKind.TEXT,)
SELECTION = SELECTION_KINDS
TEXT_OR_SELECTION = (MessageKind.TEXT,) + SELECTION_KINDS
ANY_INPUT = tuple(MessageKind)

StepHandler = Callable[[IncomingMessage, ConversationSession], Awaitable["StepResult"]]
StepPrompt = Callable[[ConversationSession], Awaitable[None]]


class FlowDefinitionError(Exception):
    """A flow's step table is incomplete or points outside its step set."""


class InvalidTransitionError(Exception):
    """A step tried to move somewhere other than next, skip-next or an edit target."""


@dataclass(frozen=True)
class StepSpec:
    """
    One row of a flow's step table.

    Attributes:
        handler: Consumes input for the step and returns a StepResult
        prompt: Sends the step's question
        expects: Message kinds the step accepts; anything else is rejected before the handler runs
        next: Step reached on a normal advance
        skip_next: Step reached on an explicit skip (defaults to next)
        optional: Accepts the skip signal
        skip_field: Temp key written with skip_default when skipped
        skip_default: Value stored on skip
        skip_ids: Selection actions that count as skip for this step
    """

    handler: StepHandler
    prompt: StepPrompt
    expects: Tuple[MessageKind, ...] = TEXT
    next: Optional[Enum] = None
    skip_next: Optional[Enum] = None
    optional: bool = False
    skip_field: Optional[str] = None
    skip_default: Any = None
    skip_ids: Tuple[str, ...] = ("skip",)

    @property
    def skip_target(self) -> Optional[Enum]:
        return self.skip_next or self.next


class Outcome(str, Enum):
    ADVANCE = "advance"      # store updates, move to next
    SKIP = "skip"            # store updates, move to skip_next
    STAY = "stay"            # store updates, ask the same step again
    INVALID = "invalid"      # store nothing, show error and ask again
    COMPLETE = "complete"    # terminal side effect done, checkpoint, then reply
    SWITCH = "switch"        # start another flow
    ABORT = "abort"          # end the run without completing, back to idle
    HANDLED = "handled"      # the handler already replied, nothing to apply


@dataclass(frozen=True)
class StepResult:
    """
    What a step handler asks the engine to do.

    checkpoint: save the session right after the step change, before anything
        is sent. Set by steps whose handler already ran a backend side effect.
    reply: sent after a completion instead of the default completion prompt.
    """

    outcome: Outcome
    updates: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    flow: Optional[FlowType] = None
    entry: Dict[str, Any] = field(default_factory=dict)
    checkpoint: bool = False
    reply: Optional[StepPrompt] = None

    @classmethod
    def advance(cls, updates: Optional[Dict[str, Any]] = None, checkpoint: bool = False) -> "StepResult":
        return cls(Outcome.ADVANCE, updates=updates or {}, checkpoint=checkpoint)

    @classmethod
    def skip(cls, updates: Optional[Dict[str, Any]] = None) -> "StepResult":
        return cls(Outcome.SKIP, updates=updates or {})

    @classmethod
    def stay(cls, updates: Optional[Dict[str, Any]] = None) -> "StepResult":
        return cls(Outcome.STAY, updates=updates or {})

    @classmethod
    def invalid(cls, error: Optional[str] = None) -> "StepResult":
        return cls(Outcome.INVALID, error=error)

    @classmethod
    def complete(cls, reply: Optional[StepPrompt] = None) -> "StepResult":
        return cls(Outcome.COMPLETE, checkpoint=True, reply=reply)

    @classmethod
    def switch(cls, flow: FlowType, **entry) -> "StepResult":
        return cls(Outcome.SWITCH, flow=flow, entry=entry)

    @classmethod
    def abort(cls) -> "StepResult":
        return cls(Outcome.ABORT)

    @classmethod
    def handled(cls) -> "StepResult":
        return cls(Outcome.HANDLED)
