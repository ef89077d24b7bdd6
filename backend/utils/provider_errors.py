"""
Model backend exception classes.

Raised by the chat providers and by the agent loop when a completion
cannot be used. These are fatal for the request that triggered them.
"""


class ModelBackendError(Exception):
    """
    The model backend failed or returned nothing usable.

    Not retried inside a loop iteration; the agent loop surfaces it
    immediately to the caller.
    """

    def __init__(self, message: str, provider: str = None):
        super().__init__(message)
        self.provider = provider
