from botforge_flow.models.factory.Nodes.BaseNodeModel import BaseNodeModel


class ActionNodeModel(BaseNodeModel):
    actionType: str = 'custom'
