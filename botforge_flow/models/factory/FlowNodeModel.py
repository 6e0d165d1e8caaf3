"""
Typed graph nodes: one wrapper model per node type, discriminated on `type`.

The persisted JSON may carry the payload under `config` (canonical) or `data`
(the editor's historical key); both are accepted.
"""

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from botforge_flow.models.factory.Nodes import (
    ActionNodeModel,
    AiResponseNodeModel,
    ApiWebhookNodeModel,
    AppointmentNodeModel,
    ConditionalNodeModel,
    FileUploadNodeModel,
    HumanHandoffNodeModel,
    LeadCaptureNodeModel,
    MessageNodeModel,
    QuestionNodeModel,
    StartNodeModel,
    SurveyNodeModel,
)


class BaseFlowNode(BaseModel):
    model_config = ConfigDict(frozen=True, extra='ignore')

    id: str = Field(..., min_length=1)
    position: Optional[Dict[str, float]] = None

    @model_validator(mode='before')
    @classmethod
    def resolve_payload_key(cls, data: Any) -> Any:
        if isinstance(data, dict):
            payload = data.get('config', data.get('data'))
            if isinstance(payload, dict):
                # Editor nodes repeat their type as data.nodeType
                payload = {k: v for k, v in payload.items() if k != 'nodeType'}
                data = {k: v for k, v in data.items() if k not in ('config', 'data')}
                data['config'] = payload
        return data


class StartNode(BaseFlowNode):
    type: Literal['start']
    config: StartNodeModel = Field(default_factory=StartNodeModel)


class MessageNode(BaseFlowNode):
    type: Literal['message']
    config: MessageNodeModel = Field(default_factory=MessageNodeModel)


class QuestionNode(BaseFlowNode):
    type: Literal['question']
    config: QuestionNodeModel


class AiResponseNode(BaseFlowNode):
    type: Literal['ai_response']
    config: AiResponseNodeModel = Field(default_factory=AiResponseNodeModel)


class LeadCaptureNode(BaseFlowNode):
    type: Literal['lead_capture']
    config: LeadCaptureNodeModel


class SurveyNode(BaseFlowNode):
    type: Literal['survey']
    config: SurveyNodeModel


class FileUploadNode(BaseFlowNode):
    type: Literal['file_upload']
    config: FileUploadNodeModel = Field(default_factory=FileUploadNodeModel)


class AppointmentNode(BaseFlowNode):
    type: Literal['appointment']
    config: AppointmentNodeModel = Field(default_factory=AppointmentNodeModel)


class ApiWebhookNode(BaseFlowNode):
    type: Literal['api_webhook']
    config: ApiWebhookNodeModel


class HumanHandoffNode(BaseFlowNode):
    type: Literal['human_handoff']
    config: HumanHandoffNodeModel = Field(default_factory=HumanHandoffNodeModel)


class ActionNode(BaseFlowNode):
    type: Literal['action']
    config: ActionNodeModel = Field(default_factory=ActionNodeModel)


class ConditionalNode(BaseFlowNode):
    type: Literal['conditional']
    config: ConditionalNodeModel


FlowNode = Annotated[
    Union[
        StartNode,
        MessageNode,
        QuestionNode,
        AiResponseNode,
        LeadCaptureNode,
        SurveyNode,
        FileUploadNode,
        AppointmentNode,
        ApiWebhookNode,
        HumanHandoffNode,
        ActionNode,
        ConditionalNode,
    ],
    Field(discriminator='type'),
]
