from fastapi import HTTPException

from telecare.core.clock import SystemClock
from telecare.core.errors import SchedulingError

_system_clock = SystemClock()


def get_clock():
    return _system_clock


def http_error(exc: SchedulingError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.detail)
