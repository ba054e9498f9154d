"""Exception hierarchy for the chat session store."""


class ChatStoreError(Exception):
    """Base class for all chat store errors."""
    pass


class EmptyMessageError(ChatStoreError):
    """Raised when submitted or edited text is empty after trimming."""
    pass


class SessionNotFoundError(ChatStoreError):
    """Raised when an operation targets a session that does not exist."""
    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class MessageNotFoundError(ChatStoreError):
    """Raised when a message id is not present in its session."""
    def __init__(self, session_id: str, message_id: str):
        super().__init__(f"Message {message_id} not found in session {session_id}")
        self.session_id = session_id
        self.message_id = message_id


class StorageError(ChatStoreError):
    """Raised when durable storage cannot be read or written."""
    pass


class ResponseBackendError(ChatStoreError):
    """Raised when the response backend fails to produce a reply."""
    pass
