from typing import Optional

from pydantic import BaseModel, ConfigDict

from botforge_flow.util.const import HANDLE_FAILURE


class EdgeNodeModel(BaseModel):
    model_config = ConfigDict(extra='allow', frozen=True)

    id: str
    source: str
    target: str
    sourceHandle: Optional[str] = None
    targetHandle: Optional[str] = None
    condition: Optional[str] = None

    @property
    def is_failure_path(self) -> bool:
        return self.sourceHandle == HANDLE_FAILURE
