"""Domain exceptions raised by the work order services"""

from typing import Any, List, Optional


class WorkOrderError(Exception):
    """Base exception for work order lifecycle errors"""

    title = "Work Order Error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(WorkOrderError):
    """Referenced entity is absent"""

    title = "Not Found"

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ValidationFailed(WorkOrderError):
    """Input fields are missing or unknown"""

    title = "Validation Error"


class InvalidTransition(WorkOrderError):
    """Status or another repository-owned field was written outside its owner"""

    title = "Invalid Transition"


class NoOp(WorkOrderError):
    """Target value equals the current value"""

    title = "No Change"

    def __init__(self, work_order_id: str, status: str):
        super().__init__(f"Work order {work_order_id} is already {status}")
        self.work_order_id = work_order_id
        self.status = status


class GuardFailed(WorkOrderError):
    """A business precondition for the transition is unmet"""

    title = "Guard Failed"

    def __init__(self, reason: str, prompt: str, action: str):
        super().__init__(prompt)
        self.reason = reason
        self.prompt = prompt
        self.action = action


class StoreUnavailable(WorkOrderError):
    """The realtime store or blob storage rejected or failed an operation"""

    title = "Store Unavailable"

    def __init__(self, operation: str, detail: str):
        super().__init__(f"{operation} failed: {detail}")
        self.operation = operation


class PartialFailure(WorkOrderError):
    """A multi-step operation completed some steps but not all of them"""

    title = "Partial Failure"

    def __init__(
        self,
        operation: str,
        completed_steps: List[str],
        detail: str,
        payload: Optional[Any] = None,
    ):
        super().__init__(f"{operation} partially failed after {completed_steps}: {detail}")
        self.operation = operation
        self.completed_steps = completed_steps
        # Whatever the caller needs to resume: the pending event, committed photos, ...
        self.payload = payload


class InvalidPhoto(WorkOrderError):
    """Photo file failed size or type validation"""

    title = "Invalid Photo"
