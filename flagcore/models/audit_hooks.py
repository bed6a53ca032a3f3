import logging

audit_log = logging.getLogger("flagcore.audit")


def _state(record):
    return record.serialize() if record is not None else None


def log_audit_event(action, old, new):
    """Audit hook for FlagLifecycleManager: one log line per changed record.

    Wired only when FLAGS_AUDIT_LOG is set; nothing is persisted.
    """
    record = new or old
    audit_log.info(
        "[AUDIT] %s FeatureFlag %s@%s old=%s new=%s",
        action,
        record.key if record else "?",
        record.environment if record else "?",
        _state(old),
        _state(new),
    )
