import logging
from typing import Optional, Protocol

from .document_tree import IMAGE_BLOCK, PARAGRAPH_BLOCK, Attributes, Block, create_block
from .generation import ErrorResult, GenerationResult, ImageResult, TextResult

logger = logging.getLogger(__name__)


class DocumentTreeAPI(Protocol):
    def get_selected_block(self) -> Optional[Block]:
        ...

    def update_block(self, client_id: str, attributes: Attributes) -> Block:
        ...

    def insert_block(self, block: Block, select: bool = True) -> Block:
        ...


class DocumentMutator:
    def __init__(self, document: DocumentTreeAPI) -> None:
        self.document = document

    def apply(self, result: GenerationResult, original_prompt: str) -> Optional[Block]:
        if isinstance(result, ErrorResult):
            return None

        if isinstance(result, ImageResult):
            attributes: Attributes = {"url": result.image_url, "caption": original_prompt}
            if result.attachment_id:
                attributes["id"] = result.attachment_id
            block = self.document.insert_block(create_block(IMAGE_BLOCK, attributes))
            logger.debug("Inserted image block %s", block.client_id)
            return block

        if isinstance(result, TextResult):
            selected = self.document.get_selected_block()
            if selected is not None:
                logger.debug("Replacing content of selected block %s", selected.client_id)
                return self.document.update_block(selected.client_id, {"content": result.content})
            block = self.document.insert_block(create_block(PARAGRAPH_BLOCK, {"content": result.content}))
            logger.debug("Inserted paragraph block %s", block.client_id)
            return block

        raise TypeError(f"Unsupported generation result: {type(result).__name__}")
