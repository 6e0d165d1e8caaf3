from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from botforge_flow.models.factory.Nodes.BaseNodeModel import BaseNodeModel


class SurveyQuestionModel(BaseModel):
    model_config = ConfigDict(extra='allow', frozen=True)

    type: Literal['rating', 'text', 'choice'] = 'text'
    question: str = Field(..., min_length=1)
    required: bool = True
    options: Tuple[str, ...] = ()
    variable: Optional[str] = None


class SurveyConfigModel(BaseModel):
    model_config = ConfigDict(extra='allow', frozen=True)

    title: str = ''
    questions: Tuple[SurveyQuestionModel, ...] = Field(..., min_length=1)
    collectNPS: bool = False


class SurveyNodeModel(BaseNodeModel):
    surveyConfig: SurveyConfigModel
