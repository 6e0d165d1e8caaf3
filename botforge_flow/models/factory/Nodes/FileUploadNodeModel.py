from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from botforge_flow.models.factory.Nodes.BaseNodeModel import BaseNodeModel


class FileConfigModel(BaseModel):
    model_config = ConfigDict(extra='allow', frozen=True)

    allowedTypes: Tuple[str, ...] = ('pdf', 'doc', 'jpg', 'png')
    maxSize: float = Field(default=10, gt=0, description="Maximum size in megabytes")
    downloadable: bool = False

    @field_validator('allowedTypes')
    @classmethod
    def normalize_types(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(t.lower().lstrip('.') for t in v)


class FileUploadNodeModel(BaseNodeModel):
    fileConfig: FileConfigModel = Field(default_factory=FileConfigModel)
    variable: str = 'uploaded_file'
