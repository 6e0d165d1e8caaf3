from .BaseNodeModel import BaseNodeModel, NodeTypeId, NodeTypesModel, strip_authoring_bindings
from .MessageNodeModel import StartNodeModel, MessageNodeModel
from .QuestionNodeModel import QuestionNodeModel
from .AiResponseNodeModel import AiResponseNodeModel
from .LeadCaptureNodeModel import LeadCaptureNodeModel, LeadFieldModel
from .SurveyNodeModel import SurveyNodeModel, SurveyConfigModel, SurveyQuestionModel
from .FileUploadNodeModel import FileUploadNodeModel, FileConfigModel
from .AppointmentNodeModel import AppointmentNodeModel
from .ApiWebhookNodeModel import ApiWebhookNodeModel, ApiConfigModel, ApiAuthModel
from .HumanHandoffNodeModel import HumanHandoffNodeModel, HandoffConfigModel
from .ActionNodeModel import ActionNodeModel
from .ConditionalNodeModel import ConditionalNodeModel, ConditionModel, ConditionOperator

__all__ = [
    'BaseNodeModel',
    'NodeTypeId',
    'NodeTypesModel',
    'strip_authoring_bindings',
    'StartNodeModel',
    'MessageNodeModel',
    'QuestionNodeModel',
    'AiResponseNodeModel',
    'LeadCaptureNodeModel',
    'LeadFieldModel',
    'SurveyNodeModel',
    'SurveyConfigModel',
    'SurveyQuestionModel',
    'FileUploadNodeModel',
    'FileConfigModel',
    'AppointmentNodeModel',
    'ApiWebhookNodeModel',
    'ApiConfigModel',
    'ApiAuthModel',
    'HumanHandoffNodeModel',
    'HandoffConfigModel',
    'ActionNodeModel',
    'ConditionalNodeModel',
    'ConditionModel',
    'ConditionOperator',
]
