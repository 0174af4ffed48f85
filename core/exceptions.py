"""
Domain exceptions.

Kept in one place so the API layer can map them to HTTP responses uniformly.
"""


class SpeedNetworkingException(Exception):
    """Base class for every domain error."""
    pass


# ============ Participant ============

class ParticipantNotFound(SpeedNetworkingException):
    def __init__(self, participant_id):
        self.participant_id = participant_id
        super().__init__(f"Participant {participant_id} not found")


class MissingCategories(SpeedNetworkingException):
    """A registration form needs at least one category."""
    pass


class DuplicateParticipantName(SpeedNetworkingException):
    """Another participant already uses this display name (case-insensitive)."""
    pass


# ============ Meeting ============

class MeetingNotFound(SpeedNetworkingException):
    def __init__(self, meeting_id):
        self.meeting_id = meeting_id
        super().__init__(f"Meeting {meeting_id} not found")


class InvalidStateTransition(SpeedNetworkingException):
    """Meeting status may only move forward: scheduled -> ongoing -> completed."""
    pass


class SchedulingConflict(SpeedNetworkingException):
    """Manual meeting would double-book a participant or repeat a pairing."""
    pass


# ============ Rating ============

class InvalidRating(SpeedNetworkingException):
    """Score out of range, or rater/ratee not part of the meeting."""
    pass


# ============ Duo ============

class DuoAlreadyConfirmed(SpeedNetworkingException):
    """One of the participants already has a different confirmed partner."""
    pass


# ============ Event clock ============

class InvalidRoundNumber(SpeedNetworkingException):
    pass
