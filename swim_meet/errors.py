"""
Exceptions raised by the orchestration core.
"""


class SwimMeetError(Exception):
    """Base class for all Swim Meet errors."""


class ValidationError(SwimMeetError):
    """A request was rejected before any work was started."""


class NotFoundError(SwimMeetError):
    """A conversation, response or user does not exist."""


class InvalidTransitionError(SwimMeetError):
    """A response was asked to leave a terminal state."""


class WorkflowBusyError(SwimMeetError):
    """A workflow step for this conversation is already in flight."""

    def __init__(self, conversation_id: str):
        super().__init__(f"Workflow step already in progress for conversation {conversation_id}")
        self.conversation_id = conversation_id


class ProviderCallError(SwimMeetError):
    """A provider call made on behalf of a synchronous request failed."""

    def __init__(self, provider: str, message: str):
        super().__init__(message)
        self.provider = provider
