from enum import Enum
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from botforge_flow.models.factory.FlowGraphModel import FlowGraphModel


class ABTestStatus(str, Enum):
    DRAFT = 'draft'
    RUNNING = 'running'
    PAUSED = 'paused'
    COMPLETED = 'completed'


class VariantFlowModel(BaseModel):
    """
    One competing flow. Provenance fields are for display only and play no
    part in execution.
    """
    model_config = ConfigDict(frozen=True, extra='allow')

    flow: FlowGraphModel
    name: Optional[str] = None
    source_chatbot_id: Optional[str] = None
    source_template_id: Optional[str] = None

    @model_validator(mode='before')
    @classmethod
    def accept_bare_graph(cls, data):
        # A variant may be stored as the graph itself plus metadata keys
        if isinstance(data, dict) and 'flow' not in data and 'nodes' in data:
            meta = {k: v for k, v in data.items() if k not in ('nodes', 'edges')}
            return {**meta, 'flow': {'nodes': data['nodes'], 'edges': data.get('edges', [])}}
        return data


class ABTestModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra='allow')

    id: str
    chatbot_id: str
    name: str = ''
    description: str = ''
    variant_a_flow: VariantFlowModel
    variant_b_flow: VariantFlowModel
    traffic_split: float = Field(default=0.5, gt=0, lt=1)
    status: ABTestStatus = ABTestStatus.DRAFT
    goal_metric: str = 'conversion_rate'
    goal_target: float = 20

    @property
    def is_running(self) -> bool:
        return self.status == ABTestStatus.RUNNING

    def variant_flow(self, variant: Literal['A', 'B']) -> VariantFlowModel:
        return self.variant_a_flow if variant == 'A' else self.variant_b_flow


class VariantResultModel(BaseModel):
    conversations: int = 0
    conversions: int = 0
    conversion_rate: float = 0.0
    avg_session_duration: float = 0.0
    total_conversion_value: float = 0.0


class ABTestSummary(BaseModel):
    test_id: Optional[str] = None
    variants: Dict[Literal['A', 'B'], VariantResultModel]
    winner: Optional[Literal['A', 'B']] = None
    improvement: float = 0.0
    goal_reached: bool = False
