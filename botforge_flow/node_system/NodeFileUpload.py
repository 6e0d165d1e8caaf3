import logging

from botforge_flow.debug.events import DebugEventType
from botforge_flow.models.factory.Nodes import FileUploadNodeModel
from botforge_flow.node_system.Node import Capture, Node

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


class NodeFileUpload(Node):
    AWAITS_INPUT = True

    def __init__(self, config: FileUploadNodeModel, **kwargs):
        super().__init__(config=config, **kwargs)
        self.file_config = config.fileConfig
        self.variable = config.variable

    def directives(self):
        return {'fileConfig': self.file_config.model_dump(mode='json')}

    async def process(self, ctx):
        yield self.yield_content(ctx, self.config.content or "Please upload your file.", **self.directives())

    def reject(self, ctx, message: str, reason: str) -> Capture:
        ctx.record(DebugEventType.FALLBACK, node_id=self.node_id, reason=reason)
        return Capture(accepted=False, complete=False,
                       outputs=[self.fallback(ctx, message, **self.directives())])

    async def receive(self, event, ctx):
        upload = event.file
        if upload is None:
            return self.reject(ctx, "Please upload a file to continue.", 'no_file')
        allowed = self.file_config.allowedTypes
        if allowed and upload.extension not in allowed:
            return self.reject(
                ctx,
                f"Sorry, that file type isn't supported. Allowed types: {', '.join(allowed)}.",
                'file_type',
            )
        if upload.size > self.file_config.maxSize * BYTES_PER_MB:
            return self.reject(
                ctx,
                f"Sorry, that file is too large. The maximum size is {self.file_config.maxSize:g} MB.",
                'file_size',
            )

        ctx.variables[self.variable] = upload.name
        if upload.url:
            ctx.variables[f"{self.variable}_url"] = upload.url
        ctx.record(DebugEventType.INPUT_CAPTURED, node_id=self.node_id, variable=self.variable)
        logger.info("NodeFileUpload:%s accepted %s (%d bytes)", self.node_id, upload.extension, upload.size)
        return Capture(outputs=[self.output(ctx, f"File received: {upload.name}")],
                       intent='file_uploaded', confidence=1.0)
