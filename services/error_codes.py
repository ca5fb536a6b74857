"""
Error codes for rejected arena operations.

Usage:
    from services.error_codes import NO_SIDE_JOINED
    from services.result import Result

    if side is Side.UNSET:
        return Result.fail("Join a side before starting", code=NO_SIDE_JOINED)
"""

# Session / selection
NO_TOPIC = "no_topic"
TOPIC_NOT_FOUND = "topic_not_found"
EMPTY_CATALOG = "empty_catalog"
INVALID_PERSONA = "invalid_persona"
INVALID_SIDE = "invalid_side"

# Round lifecycle
NO_SIDE_JOINED = "no_side_joined"
INVALID_PHASE = "invalid_phase"

# Stat drops
MOVE_NOT_FOUND = "move_not_found"
MOVE_ALREADY_USED = "move_already_used"

# Thumbnails
NO_THUMBNAIL = "no_thumbnail"
