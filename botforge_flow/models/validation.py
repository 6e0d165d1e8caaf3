from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ValidationErrorKind(str, Enum):
    DUPLICATE_NODE_ID = 'DuplicateNodeId'
    MISSING_START_NODE = 'MissingStartNode'
    DANGLING_EDGE = 'DanglingEdge'
    AMBIGUOUS_BRANCH = 'AmbiguousBranch'
    ORPHANED_CONDITION = 'OrphanedCondition'
    # Raw JSON that could not be parsed into typed nodes/edges
    INVALID_NODE_CONFIG = 'InvalidNodeConfig'
    # Authoring warnings, never blocking
    UNREACHABLE_NODE = 'UnreachableNode'
    DEAD_END = 'DeadEnd'
    UNKNOWN_VARIABLE = 'UnknownVariable'
    PASS_THROUGH_LOOP = 'PassThroughLoop'

    def __str__(self):
        return self.value


class ValidationError(BaseModel):
    """One structural problem found in a flow graph."""
    kind: ValidationErrorKind
    message: str
    severity: Literal['error', 'warning'] = 'error'
    node_id: Optional[str] = None
    edge_id: Optional[str] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> dict:
        return self.model_dump(mode='json', exclude_none=True)


class ValidationResult(BaseModel):
    valid: bool
    errors: List[ValidationError] = Field(default_factory=list)
    warnings: List[ValidationError] = Field(default_factory=list)
