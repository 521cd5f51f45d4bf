"""
Exceptions raised by the standings core, with user-facing messages.
"""


class ScorebookError(Exception):
    """Base exception for scoring and leaderboard errors."""

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message


class FormulaValidationError(ScorebookError, ValueError):
    """Raised when a formula, rule or condition is malformed."""

    def __init__(self, reason: str, rule_id: str = None):
        if rule_id is not None:
            message = f"Invalid rule '{rule_id}': {reason}"
        else:
            message = f"Invalid formula: {reason}"
        super().__init__(message, reason)
        self.reason = reason
        self.rule_id = rule_id
