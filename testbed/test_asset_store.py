import pytest

from chatterbox.asset_store import AssetStore


def test_store_image_writes_file_and_media_record(tmp_path):
    store = AssetStore(tmp_path, base_url="https://cms.example/uploads/")

    record = store.store_image(b"png-bytes", description="a red fox in snow")

    assert record["url"] == f"https://cms.example/uploads/{record['id']}.png"
    assert record["post_content"] == "a red fox in snow"
    assert record["title"] == "a red fox in snow"
    assert record["mime_type"] == "image/png"
    assert (tmp_path / "uploads" / f"{record['id']}.png").read_bytes() == b"png-bytes"
    assert store.get_media(record["id"]) == record
    assert store.list_media() == [record]


def test_default_url_points_at_upload_directory(tmp_path):
    store = AssetStore(tmp_path)

    record = store.store_image(b"x", description="")

    assert record["url"] == str(tmp_path / "uploads" / f"{record['id']}.png")
    assert record["title"] == "Generated image"


def test_long_descriptions_are_truncated_in_title_only(tmp_path):
    description = "a " * 60
    record = AssetStore(tmp_path).store_image(b"x", description=description)

    assert len(record["title"]) <= 60
    assert record["title"].endswith("...")
    assert record["post_content"] == description


def test_empty_data_and_unknown_type_are_rejected(tmp_path):
    store = AssetStore(tmp_path)

    with pytest.raises(ValueError):
        store.store_image(b"", description="x")
    with pytest.raises(ValueError):
        store.store_image(b"x", description="x", mime_type="image/bmp")
    assert store.list_media() == []


def test_get_media_unknown_id_returns_none(tmp_path):
    assert AssetStore(tmp_path).get_media("att_missing") is None
