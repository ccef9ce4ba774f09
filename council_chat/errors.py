"""Exception types shared by the council pipeline and the HTTP layer."""


class CouncilError(Exception):
    """Base class for council errors that are local to a single run."""


class InvalidRequestError(CouncilError):
    """The deliberation request failed validation (maps to HTTP 400)."""


class DeliberationInProgressError(CouncilError):
    """A deliberation is already running for this conversation (maps to HTTP 409)."""

    def __init__(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id
        super().__init__(
            f"A deliberation is already running for conversation {conversation_id!r}. "
            "Please wait for it to finish."
        )


class UnknownModelError(CouncilError):
    """A model id does not exist in the registry."""

    def __init__(self, model_id: str) -> None:
        self.model_id = model_id
        super().__init__(f"Unknown model: {model_id}")
