from typing import Any, Dict, Optional


class EngineError(Exception):
    code        = "engine_error"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_details(self) -> Dict[str, Any]:
        return {"code": self.code, **self.details}


class InvalidCoordinate(EngineError):
    code = "invalid_coordinate"


class InvalidTimeFormat(EngineError):
    code = "invalid_time_format"


class EndBeforeStart(EngineError):
    code = "end_before_start"


class OutsideAvailableHours(EngineError):
    code        = "outside_available_hours"
    status_code = 422


class TimeSlotConflict(EngineError):
    code        = "time_slot_conflict"
    status_code = 409


class NoCandidatesFound(EngineError):
    code        = "no_candidates_found"
    status_code = 404


class InvalidRate(EngineError):
    code = "invalid_rate"
