from chatterbox.conversation_store import Message, error_message, user_message
from chatterbox.editor_policy import format_message, get_action_buttons


def test_buttons_are_enabled_for_non_empty_prompt():
    buttons = get_action_buttons("Write a haiku", is_loading=False)

    assert [b["kind"] for b in buttons] == ["text", "image"]
    assert [b["label"] for b in buttons] == ["Generate Text", "Generate Image"]
    assert not any(b["disabled"] for b in buttons)


def test_buttons_are_disabled_for_blank_prompt_or_while_loading():
    assert all(b["disabled"] for b in get_action_buttons("  ", is_loading=False))

    loading = get_action_buttons("Write a haiku", is_loading=True)
    assert all(b["disabled"] and b["busy"] for b in loading)
    assert all(b["label"] == "Generating..." for b in loading)


def test_error_messages_are_prefixed_and_styled():
    view = format_message(error_message("API key not configured"))

    assert view["text"] == "Error: API key not configured"
    assert view["style"]["color"] == "#dc3545"
    assert view["image_url"] is None


def test_image_messages_show_image_with_content_as_alt():
    message = Message(
        role="assistant",
        kind="image",
        content="Generated image from prompt: fox",
        image_url="https://images.example/fox.png",
    )

    view = format_message(message)

    assert view["image_url"] == "https://images.example/fox.png"
    assert view["alt"] == "Generated image from prompt: fox"
    assert view["aria_label"] == "assistant message"


def test_user_messages_use_user_style():
    view = format_message(user_message("hello"))

    assert view["text"] == "hello"
    assert view["style"]["align"] == "right"
