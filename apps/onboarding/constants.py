"""Polling cadence for form-signing status."""

# Signing-queue refresh advertised to clients.
SUBMISSION_POLL_INTERVAL_SECONDS = 15

# Post-sign watcher: re-poll DocuSeal every WATCH_INTERVAL_SECONDS,
# at most WATCH_MAX_TICKS times.
WATCH_INTERVAL_SECONDS = 10
WATCH_MAX_TICKS = 12
