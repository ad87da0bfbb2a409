"""Phases of the free-interview session.

A free interview is a fixed ten-turn arc. The phase is resolved from the
turn number alone; every rule about feedback, fixed questions and closure
hangs off the phase rather than off raw turn numbers.
"""
from enum import Enum

INTERVIEW_TURNS = 10

COMPANY_QUESTION = "What company are you going to apply to?"
POSITION_QUESTION = "What position are you going to apply for?"


class InterviewPhase(str, Enum):
    GREETING = "greeting"
    ASK_COMPANY = "ask_company"
    ASK_POSITION = "ask_position"
    OPENING_QUESTION = "opening_question"
    INTERVIEW = "interview"
    CLOSING = "closing"

    @classmethod
    def for_turn(cls, turn_number: int) -> "InterviewPhase":
        """Map a 1-indexed turn number to its phase."""
        if turn_number < 1:
            raise ValueError(f"turn_number must be >= 1, got {turn_number}")
        if turn_number == 1:
            return cls.GREETING
        if turn_number == 2:
            return cls.ASK_COMPANY
        if turn_number == 3:
            return cls.ASK_POSITION
        if turn_number == 4:
            return cls.OPENING_QUESTION
        if turn_number < INTERVIEW_TURNS:
            return cls.INTERVIEW
        return cls.CLOSING

    @property
    def is_scripted(self) -> bool:
        """Scripted phases are served without calling the model."""
        return self in (InterviewPhase.GREETING, InterviewPhase.ASK_COMPANY, InterviewPhase.ASK_POSITION)

    @property
    def clears_feedback(self) -> bool:
        """Framing turns never carry feedback, whatever the model returns."""
        return self in (
            InterviewPhase.ASK_COMPANY,
            InterviewPhase.ASK_POSITION,
            InterviewPhase.OPENING_QUESTION,
        )

    @property
    def extracts_feedback(self) -> bool:
        """Acknowledgment tokens are split off the message only mid-interview."""
        return self is InterviewPhase.INTERVIEW


def interview_questions_asked(turn_number: int) -> int:
    """Number of dynamic interview questions asked before this turn."""
    return max(0, turn_number - 4)
