"""
Form-submission status reducer.

Status moves forward along ``not_sent < pending < sent < opened < completed``;
``declined`` and ``expired`` are terminal exceptions, and so is
``completed``. Optimistic events (``send_requested``, ``sign_started``)
change only what is displayed. Authoritative events (``send_succeeded``,
``poll_result``, ``webhook``) move the confirmed status and replace any
optimistic display, but never move it backwards.

The reducer is pure: ``reduce(state, event)`` returns a new state.
"""

from dataclasses import dataclass, replace
from typing import Iterable, Optional

NOT_SENT = 'not_sent'
PENDING = 'pending'
SENT = 'sent'
OPENED = 'opened'
COMPLETED = 'completed'
DECLINED = 'declined'
EXPIRED = 'expired'

ORDER = {NOT_SENT: 0, PENDING: 1, SENT: 2, OPENED: 3, COMPLETED: 4}
TERMINAL = frozenset({COMPLETED, DECLINED, EXPIRED})
KNOWN = frozenset(ORDER) | TERMINAL

SEND_REQUESTED = 'send_requested'
SEND_SUCCEEDED = 'send_succeeded'
SEND_FAILED = 'send_failed'
SIGN_STARTED = 'sign_started'
POLL_RESULT = 'poll_result'
WEBHOOK = 'webhook'


@dataclass(frozen=True)
class SubmissionState:
    confirmed: str = NOT_SENT
    displayed: str = NOT_SENT
    optimistic: bool = False

    @property
    def is_terminal(self):
        return self.confirmed in TERMINAL


@dataclass(frozen=True)
class Event:
    kind: str
    status: Optional[str] = None


def _forward(current, target):
    """The later of two non-terminal statuses."""
    return target if ORDER.get(target, -1) > ORDER.get(current, -1) else current


def advance_status(current, incoming):
    """
    Persisted-status transition for an authoritative report.

    Terminal statuses absorb everything; a terminal report always lands;
    otherwise the status only moves forward.
    """
    if current in TERMINAL:
        return current
    if incoming not in KNOWN:
        return current
    if incoming in TERMINAL:
        return incoming
    return _forward(current, incoming)


def reduce(state: SubmissionState, event: Event) -> SubmissionState:
    if state.is_terminal:
        return state

    if event.kind == SEND_REQUESTED:
        return replace(state, displayed=_forward(state.confirmed, SENT), optimistic=True)

    if event.kind == SIGN_STARTED:
        return replace(state, displayed=_forward(state.displayed, OPENED), optimistic=True)

    if event.kind == SEND_FAILED:
        return SubmissionState(confirmed=state.confirmed, displayed=state.confirmed, optimistic=False)

    if event.kind == SEND_SUCCEEDED:
        confirmed = advance_status(state.confirmed, event.status or SENT)
        return SubmissionState(confirmed=confirmed, displayed=confirmed, optimistic=False)

    if event.kind in (POLL_RESULT, WEBHOOK):
        confirmed = advance_status(state.confirmed, event.status)
        return SubmissionState(confirmed=confirmed, displayed=confirmed, optimistic=False)

    raise ValueError(f"Unknown submission event: {event.kind}")


def replay(events: Iterable[Event], initial: Optional[SubmissionState] = None) -> SubmissionState:
    state = initial or SubmissionState()
    for event in events:
        state = reduce(state, event)
    return state


def from_status(status: str) -> SubmissionState:
    """State for a persisted, confirmed status."""
    return SubmissionState(confirmed=status, displayed=status, optimistic=False)


def status_from_docuseal(payload: dict) -> Optional[str]:
    """
    Collapse a DocuSeal submission payload into one status.

    The submission-level status wins when terminal; otherwise it is derived
    from the submitters.
    """
    reported = (payload.get('status') or '').lower()
    if reported in TERMINAL:
        return reported

    submitters = payload.get('submitters') or []
    statuses = [(s.get('status') or '').lower() for s in submitters]
    if any(s == DECLINED or submitter.get('declined_at') for s, submitter in zip(statuses, submitters)):
        return DECLINED
    if submitters and all(s == COMPLETED or submitter.get('completed_at') for s, submitter in zip(statuses, submitters)):
        return COMPLETED
    if any(s in (OPENED, COMPLETED) or submitter.get('opened_at') for s, submitter in zip(statuses, submitters)):
        return OPENED
    if any(s == SENT or submitter.get('sent_at') for s, submitter in zip(statuses, submitters)):
        return SENT
    if reported in KNOWN:
        return reported
    return PENDING if submitters else None
