import uuid
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

PARAGRAPH_BLOCK = "core/paragraph"
IMAGE_BLOCK = "core/image"

Attributes = Dict[str, Any]


@dataclass
class Block:
    client_id: str
    name: str
    attributes: Attributes = field(default_factory=dict)
    inner_blocks: List["Block"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clientId": self.client_id,
            "name": self.name,
            "attributes": deepcopy(self.attributes),
            "innerBlocks": [child.to_dict() for child in self.inner_blocks],
        }


def create_block(name: str, attributes: Optional[Attributes] = None) -> Block:
    return Block(client_id=uuid.uuid4().hex, name=name, attributes=deepcopy(attributes or {}))


class DocumentTree:
    def __init__(self, blocks: Optional[List[Block]] = None) -> None:
        self.blocks: List[Block] = list(blocks or [])
        self.selected_client_id: Optional[str] = None

    def iter_blocks(self) -> Iterator[Block]:
        stack = list(reversed(self.blocks))
        while stack:
            block = stack.pop()
            yield block
            stack.extend(reversed(block.inner_blocks))

    def find_block(self, client_id: str) -> Optional[Block]:
        for block in self.iter_blocks():
            if block.client_id == client_id:
                return block
        return None

    def get_selected_block(self) -> Optional[Block]:
        if self.selected_client_id is None:
            return None
        return self.find_block(self.selected_client_id)

    def select_block(self, client_id: str) -> None:
        if self.find_block(client_id) is None:
            raise KeyError(f"Block not found: {client_id}")
        self.selected_client_id = client_id

    def clear_selection(self) -> None:
        self.selected_client_id = None

    def update_block(self, client_id: str, attributes: Attributes) -> Block:
        block = self.find_block(client_id)
        if block is None:
            raise KeyError(f"Block not found: {client_id}")
        merged = deepcopy(block.attributes)
        merged.update(deepcopy(attributes))
        block.attributes = merged
        return block

    def insert_block(self, block: Block, select: bool = True) -> Block:
        siblings, index = self._insertion_point()
        siblings.insert(index, block)
        if select:
            self.selected_client_id = block.client_id
        return block

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [block.to_dict() for block in self.blocks]

    def _insertion_point(self) -> Tuple[List[Block], int]:
        selected_id = self.selected_client_id
        if selected_id is not None:
            found = _locate(self.blocks, selected_id)
            if found is not None:
                siblings, index = found
                return siblings, index + 1
        return self.blocks, len(self.blocks)


def _locate(blocks: List[Block], client_id: str) -> Optional[Tuple[List[Block], int]]:
    for index, block in enumerate(blocks):
        if block.client_id == client_id:
            return blocks, index
        found = _locate(block.inner_blocks, client_id)
        if found is not None:
            return found
    return None
