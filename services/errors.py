from typing import Optional, Dict


class MirrorError(Exception):
    """Base class for failures of the subscription mirror.

    ``step`` names the stage that failed (for example ``create_customer`` or
    ``insert_user``) so the caller knows which side needs reconciling.
    """

    def __init__(self, message: str, step: Optional[str] = None):
        self.message = message
        self.step = step
        super().__init__(message)


class ProviderError(MirrorError):
    def __init__(
        self,
        status_code: int,
        message: str,
        code: Optional[str] = None,
        step: Optional[str] = None,
        response: Optional[Dict] = None
    ):
        self.status_code = status_code
        self.code = code
        self.response = response
        super().__init__(f"Provider Error {status_code}: {message}", step)
        self.message = message


class PersistenceError(MirrorError):
    def __init__(
        self,
        message: str,
        step: Optional[str] = None,
        orphaned_id: Optional[str] = None,
        conflict: bool = False
    ):
        self.orphaned_id = orphaned_id
        self.conflict = conflict
        super().__init__(message, step)


class NotFoundError(MirrorError):
    def __init__(self, entity: str, identifier, step: Optional[str] = None):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} {identifier} not found", step)
