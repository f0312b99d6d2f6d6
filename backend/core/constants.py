"""
Core constants — **Single Source of Truth** for project-wide magic numbers.

Any business rule that references a numeric constant should import it
from here instead of hardcoding.  This avoids drift between the
serializers (field-level limits) and the services (rule enforcement).
"""

# ── Transfer Notes ──────────────────────────────────────────────────
# Free-text notes attached to a transfer request.  When the reason is
# "OTHER" the notes are the only explanation the destination unit gets,
# so a minimum length applies.
TRANSFER_NOTES_MAX_LENGTH: int = 500
TRANSFER_OTHER_NOTES_MIN_LENGTH: int = 20

# ── Transfer Rejection ──────────────────────────────────────────────
# The rejecting unit must explain itself to the source unit.
REJECTION_REASON_MIN_LENGTH: int = 10
REJECTION_REASON_MAX_LENGTH: int = 500

# ── Complaint Closure ───────────────────────────────────────────────
RESOLUTION_NOTE_MAX_LENGTH: int = 2000

# ── Transfer Statistics ─────────────────────────────────────────────
# Window used by ``GET /api/transfers/stats/`` when no range is given.
TRANSFER_STATS_DEFAULT_DAYS: int = 30
