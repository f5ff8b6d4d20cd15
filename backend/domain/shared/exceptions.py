"""
Domain Exceptions.

Custom exceptions for domain-level errors.
These exceptions represent business rule violations in the BOM tree.
"""

from typing import Optional, Any, Dict


class DomainException(Exception):
    """Base exception for all domain errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "DOMAIN_ERROR"
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": dict(self.details)}


class EntityNotFoundException(DomainException):
    """Raised when an entity is not found."""

    def __init__(self, entity_type: str, entity_id: Any, code: Optional[str] = None):
        super().__init__(
            message=f"{entity_type} with id '{entity_id}' not found",
            code=code or "ENTITY_NOT_FOUND",
            details={"entity_type": entity_type, "entity_id": str(entity_id)}
        )


class NodeNotFoundException(EntityNotFoundException):
    """Raised when an update or delete targets a node id absent from the tree."""

    def __init__(self, node_id: Any):
        super().__init__("BOMNode", node_id, code="NODE_NOT_FOUND")


class ParentNotFoundException(EntityNotFoundException):
    """Raised when a new child references a parent id absent from the tree."""

    def __init__(self, parent_id: Any):
        super().__init__("Parent BOMNode", parent_id, code="PARENT_NOT_FOUND")


class EntityAlreadyExistsException(DomainException):
    """Raised when trying to create an entity that already exists."""

    def __init__(self, entity_type: str, identifier: Any):
        super().__init__(
            message=f"{entity_type} with identifier '{identifier}' already exists",
            code="ENTITY_ALREADY_EXISTS",
            details={"entity_type": entity_type, "identifier": str(identifier)}
        )


class ValidationException(DomainException):
    """Raised when validation fails."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details={"field": field, "value": str(value) if value is not None else None}
        )


class BusinessRuleViolationException(DomainException):
    """Raised when a business rule is violated."""

    def __init__(self, rule: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code="BUSINESS_RULE_VIOLATION",
            details={"rule": rule, **(details or {})}
        )
        self.rule = rule


class DepthExceededException(BusinessRuleViolationException):
    """Raised when a level has no child level (level 7 is the leaf tier)."""

    def __init__(self, level: int):
        super().__init__(
            "DEPTH_EXCEEDED",
            f"Level {level} is the deepest BOM level and cannot have children",
            details={"level": level},
        )
        self.code = "DEPTH_EXCEEDED"


class MaxDepthExceededException(DepthExceededException):
    """Raised when a child is added under a level-7 (alternate part) node."""

    def __init__(self, parent_id: Any, level: int):
        super().__init__(level)
        self.message = (
            f"Cannot add a child under node '{parent_id}': "
            f"level {level} is the maximum BOM depth"
        )
        self.args = (self.message,)
        self.code = "MAX_DEPTH_EXCEEDED"
        self.details["parent_id"] = str(parent_id)


class RootDeletionForbiddenException(BusinessRuleViolationException):
    """Raised when deleting a root node is attempted."""

    def __init__(self, node_id: Any):
        super().__init__(
            "CANNOT_REMOVE_ROOT",
            "Cannot remove root item from BOM structure",
            details={"node_id": str(node_id)},
        )
        self.code = "ROOT_DELETION_FORBIDDEN"
