import re
from typing import Optional

from fastapi import HTTPException, status

_INTEGER = re.compile(r"-?\d+")

def parse_int_param(name: str, value: Optional[str]) -> Optional[int]:
    """Optional integer query parameter; blank means absent, anything else non-numeric is a 400."""
    if value is None or not value.strip():
        return None
    value = value.strip()
    if not _INTEGER.fullmatch(value):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {name} parameter: '{value}' is not an integer"
        )
    return int(value)
