"""Custom exceptions for arcnet."""


class ArcnetError(Exception):
    """Base exception for all arcnet errors."""

    pass


class ParseError(ArcnetError):
    """Raised when a project file cannot be read or parsed."""

    pass


class ValidationError(ArcnetError):
    """Raised when a task list fails validation."""

    pass


class MalformedIdError(ValidationError):
    """Raised when a task id is not of the form ``"<from>-<to>"``."""

    def __init__(self, task_id: object) -> None:
        self.task_id = task_id
        super().__init__(f"Malformed task id: {task_id!r} (expected '<from>-<to>')")


class DuplicateIdError(ValidationError):
    """Raised when two tasks share an id."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Duplicate task id: {task_id}")


class InvalidFieldError(ValidationError):
    """Raised when a task field holds an unusable value."""

    def __init__(self, task_id: object, field: str, problem: str) -> None:
        self.task_id = task_id
        self.field = field
        super().__init__(f"Task {task_id}: {field} {problem}")


class CycleDetectedError(ValidationError):
    """Raised when the dependency or event graph contains a cycle."""

    def __init__(self, node: object, kind: str = "event") -> None:
        self.node = node
        self.kind = kind
        super().__init__(f"Cycle detected in the network graph at {kind} {node}")


class OverrideError(ValidationError):
    """Raised when a start-time override cannot be applied."""

    def __init__(self, task_id: str, problem: str) -> None:
        self.task_id = task_id
        super().__init__(f"Override for task {task_id}: {problem}")
