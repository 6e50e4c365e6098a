import pytest

from chatterbox.generation import (
    GenerationRequest,
    ImageResult,
    TextResult,
    result_from_envelope,
    result_to_envelope_data,
)


def test_request_validation():
    assert GenerationRequest("hello").validate() == (True, "ok")
    assert GenerationRequest("   ").validate() == (False, "Prompt is required")
    ok, reason = GenerationRequest("hello", "video").validate()
    assert ok is False
    assert "video" in reason


def test_result_from_envelope_text_and_image():
    assert result_from_envelope({"content": "hi", "type": "text"}, "prompt") == TextResult(content="hi")

    image = result_from_envelope(
        {"content": "Generated image from prompt: fox", "imageUrl": "https://x/fox.png", "type": "image"},
        "fox",
    )
    assert image == ImageResult(
        image_url="https://x/fox.png",
        source_prompt="fox",
        content="Generated image from prompt: fox",
    )


def test_result_from_envelope_rejects_bad_shapes():
    with pytest.raises(ValueError, match="Error generating content"):
        result_from_envelope("oops", "prompt")
    with pytest.raises(ValueError, match="Error generating response"):
        result_from_envelope({"type": "text"}, "prompt")
    with pytest.raises(ValueError, match="Error generating image"):
        result_from_envelope({"type": "image", "content": "x"}, "prompt")


def test_image_envelope_data_defaults_content_to_prompt_description():
    data = result_to_envelope_data(ImageResult(image_url="https://x/fox.png", source_prompt="fox"))

    assert data == {
        "content": "Generated image from prompt: fox",
        "imageUrl": "https://x/fox.png",
        "type": "image",
    }
