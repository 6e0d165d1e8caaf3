from typing import Optional

from botforge_flow.models.factory.Nodes.BaseNodeModel import BaseNodeModel


class StartNodeModel(BaseNodeModel):
    """Entry point of a flow; its content is the greeting."""


class MessageNodeModel(BaseNodeModel):
    """
    Plain bot message. When `variable` is set the node waits for a free-text
    reply and stores it under that name.
    """
    variable: Optional[str] = None
