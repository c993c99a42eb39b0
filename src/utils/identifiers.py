"""
Path identifier checks
"""

import logging
import uuid
from fastapi import HTTPException, Path

logger = logging.getLogger(__name__)

def is_valid_id(value: str) -> bool:
    """True when value parses as a UUID"""
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True

async def check_panel_id(id: str = Path(..., description="Panel ID")) -> str:
    """
    FastAPI dependency rejecting malformed panel IDs before the handler runs.

    Returns the ID in canonical (lower-case, hyphenated) form.
    """
    if not is_valid_id(id):
        logger.warning(f"Rejected malformed panel ID: {id}")
        raise HTTPException(status_code=400, detail="Invalid ID")
    return str(uuid.UUID(id))
