from .EdgeNodeModel import EdgeNodeModel
from .FlowNodeModel import FlowNode, BaseFlowNode
from .FlowGraphModel import FlowGraphModel

__all__ = ['EdgeNodeModel', 'FlowNode', 'BaseFlowNode', 'FlowGraphModel']
