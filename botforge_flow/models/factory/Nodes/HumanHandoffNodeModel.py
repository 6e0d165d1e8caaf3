from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from botforge_flow.models.factory.Nodes.BaseNodeModel import BaseNodeModel


class HandoffConfigModel(BaseModel):
    model_config = ConfigDict(extra='allow', frozen=True)

    reason: str = ''
    priority: Literal['low', 'medium', 'high', 'urgent'] = 'medium'
    department: str = 'support'


class HumanHandoffNodeModel(BaseNodeModel):
    handoffConfig: HandoffConfigModel = Field(default_factory=HandoffConfigModel)
