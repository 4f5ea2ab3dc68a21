from typing import Optional
from datetime import datetime

from dutrel.schemas.result import Result


class HealthResult(Result):
    service: str
    status: str
    db_ok: bool
    db_error: Optional[str] = None
    ms: int
    time: datetime
