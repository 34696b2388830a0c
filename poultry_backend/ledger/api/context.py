# ledger/api/context.py

from audit.services.audit_sink import SYSTEM_ACTOR


def actor_from_request(request) -> str:
    """
    Audit attribution only; authentication is DRF's job.
    """
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return SYSTEM_ACTOR
    return str(user.pk)
