import pytest

from chatterbox.document_tree import PARAGRAPH_BLOCK, Block, DocumentTree, create_block


def _nested_document():
    child_a = create_block(PARAGRAPH_BLOCK, {"content": "a"})
    child_b = create_block(PARAGRAPH_BLOCK, {"content": "b"})
    group = Block(client_id="group", name="core/group", inner_blocks=[child_a, child_b])
    tail = create_block(PARAGRAPH_BLOCK, {"content": "tail"})
    return DocumentTree([group, tail]), group, child_a, child_b, tail


def test_iter_blocks_is_document_order():
    document, group, child_a, child_b, tail = _nested_document()

    assert [b.client_id for b in document.iter_blocks()] == [
        group.client_id,
        child_a.client_id,
        child_b.client_id,
        tail.client_id,
    ]


def test_insert_without_selection_appends_to_root_and_selects():
    document, *_ = _nested_document()
    block = create_block(PARAGRAPH_BLOCK, {"content": "new"})

    document.insert_block(block)

    assert document.blocks[-1] is block
    assert document.get_selected_block() is block


def test_insert_goes_after_selected_block_in_same_parent():
    document, group, child_a, child_b, tail = _nested_document()
    document.select_block(child_a.client_id)
    block = create_block(PARAGRAPH_BLOCK, {"content": "between"})

    document.insert_block(block, select=False)

    assert group.inner_blocks == [child_a, block, child_b]
    assert document.selected_client_id == child_a.client_id


def test_update_block_merges_attributes():
    document, _, child_a, _, _ = _nested_document()

    document.update_block(child_a.client_id, {"content": "A", "align": "center"})

    assert child_a.attributes == {"content": "A", "align": "center"}


def test_unknown_client_ids_raise():
    document = DocumentTree()

    with pytest.raises(KeyError):
        document.select_block("missing")
    with pytest.raises(KeyError):
        document.update_block("missing", {"content": "x"})


def test_clear_selection_and_serialization():
    document, group, *_ = _nested_document()
    document.select_block(group.client_id)
    document.clear_selection()

    assert document.get_selected_block() is None
    serialized = document.to_dicts()
    assert serialized[0]["name"] == "core/group"
    assert [child["attributes"]["content"] for child in serialized[0]["innerBlocks"]] == ["a", "b"]


def test_create_block_copies_attributes():
    attributes = {"content": "x"}
    block = create_block(PARAGRAPH_BLOCK, attributes)
    attributes["content"] = "changed"

    assert block.attributes == {"content": "x"}
    assert block.client_id
