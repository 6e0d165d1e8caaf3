from botforge_flow.authoring.flow_draft import FlowDraft, SaveResult

__all__ = ["FlowDraft", "SaveResult"]
