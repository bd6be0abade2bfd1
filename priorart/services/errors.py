# priorart/services/errors.py


class ChallengeError(Exception):
    pass


class NotFoundError(ChallengeError):
    pass


class PermissionDeniedError(ChallengeError):
    pass


class SubmissionClosedError(ChallengeError):
    """The results or report deadline has passed, or the challenge has ended."""


class SubmissionLimitError(ChallengeError):
    pass
