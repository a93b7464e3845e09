class QuizError(Exception):
    """Base class for errors raised by the quiz engine."""


class ConfigurationError(QuizError):
    """The question pool has no entry for a requested mode/difficulty, or could not be loaded."""


class PredictionError(QuizError):
    """The difficulty predictor failed or suggested something that is not a tier."""


class RoundInProgressError(QuizError):
    """A round was started or answered out of order."""


class SessionNotFoundError(QuizError):
    pass


class AnswerKeyError(QuizError):
    """A text answer was submitted for a question that carries no answer key."""
