"""Running django-fsm transitions on documents from the services."""

import logging

from django_fsm import TransitionNotAllowed, can_proceed

from core.exceptions import IllegalStateTransition

logger = logging.getLogger(__name__)


def run_transition(doc, transitions, target_state, *, by=None, label="Document"):
    """Call the transition leading to target_state and save the document.

    transitions maps a target state to the name of the transition method.
    The caller holds the row lock and the transaction, so the new state and
    any ledger entries written by the transition commit together.
    """
    name = transitions.get(target_state)
    if name is None:
        raise IllegalStateTransition(f"{label} {doc.number} cannot be set to {target_state}.")

    method = getattr(doc, name)
    if not can_proceed(method):
        raise IllegalStateTransition(f"{label} {doc.number} cannot go from {doc.state} to {target_state}.")
    try:
        method(by=by)
    except TransitionNotAllowed as e:
        raise IllegalStateTransition(str(e))
    doc.save()

    logger.info("%s %s -> %s", label, doc.number, doc.state)
    return doc
