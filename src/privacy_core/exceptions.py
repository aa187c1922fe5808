"""Exceptions raised by the privacy core services."""


class PrivacyCoreError(Exception):
    """Base exception for privacy core operations."""


class HashComparisonError(PrivacyCoreError):
    """Raised when hashing or hash comparison fails unexpectedly."""


class DeduplicationError(PrivacyCoreError):
    """Raised when a deduplication check fails unexpectedly."""


class RetentionPolicyNotFoundError(PrivacyCoreError):
    """Raised when a retention policy id is unknown."""

    def __init__(self, policy_id: str):
        self.policy_id = policy_id
        super().__init__(f"Retention policy not found: {policy_id}")


class InvalidRetentionPolicyError(PrivacyCoreError):
    """Raised when a retention policy fails validation."""

    def __init__(self, errors: list):
        self.errors = errors
        super().__init__(f"Invalid retention policy: {errors}")


class CleanupTaskNotFoundError(PrivacyCoreError):
    """Raised when a cleanup task id is unknown."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Cleanup task not found: {task_id}")


class CleanupAlreadyRunningError(PrivacyCoreError):
    """Raised when a cleanup is requested while another one is in flight."""

    def __init__(self):
        super().__init__("Cleanup service is already running")


class InvalidTaskStateError(PrivacyCoreError):
    """Raised on an illegal cleanup task state transition."""

    def __init__(self, task_id: str, current: str, requested: str):
        self.task_id = task_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cleanup task {task_id} cannot move from {current} to {requested}"
        )
