from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from botforge_flow.models.factory.Nodes.BaseNodeModel import BaseNodeModel


class ApiAuthModel(BaseModel):
    model_config = ConfigDict(extra='allow', frozen=True)

    type: Literal['none', 'bearer', 'basic', 'api_key'] = 'none'
    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    header: str = 'X-API-Key'


class ApiConfigModel(BaseModel):
    """
    Outbound HTTP call made when traversal enters an api_webhook node.

    `body` is rendered as a Jinja2 template against the conversation variables.
    `responseMapping` copies values out of the JSON response:
    {"order_status": "data.order.status"}.
    """
    model_config = ConfigDict(extra='allow', frozen=True)

    url: str = Field(..., min_length=1)
    method: Literal['GET', 'POST', 'PUT', 'PATCH', 'DELETE'] = 'POST'
    headers: Dict[str, str] = Field(default_factory=dict)
    auth: ApiAuthModel = Field(default_factory=ApiAuthModel)
    timeout: Optional[float] = Field(default=None, gt=0, description="Seconds; engine default when omitted")
    body: Optional[Dict[str, Any] | str] = None
    responseMapping: Dict[str, str] = Field(default_factory=dict)

    @field_validator('method', mode='before')
    @classmethod
    def normalize_method(cls, v: Any) -> Any:
        return v.upper().strip() if isinstance(v, str) else v


class ApiWebhookNodeModel(BaseNodeModel):
    apiConfig: ApiConfigModel
