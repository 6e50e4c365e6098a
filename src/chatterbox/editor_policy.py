from typing import Dict, List

from .conversation_store import KIND_ERROR, ROLE_USER, Message
from .generation import KIND_IMAGE, KIND_TEXT

ACTION_KINDS = [KIND_TEXT, KIND_IMAGE]

MESSAGE_STYLES = {
    "user": {"background": "#e9ecef", "color": "#212529", "align": "right"},
    "assistant": {"background": "#ffffff", "color": "#212529", "align": "left"},
    "error": {"background": "#ffe6e6", "color": "#dc3545", "align": "left"},
}


def get_action_buttons(prompt: str, is_loading: bool) -> List[Dict[str, object]]:
    disabled = is_loading or not (prompt or "").strip()
    buttons = []
    for kind in ACTION_KINDS:
        buttons.append(
            {
                "kind": kind,
                "label": "Generating..." if is_loading else f"Generate {kind.capitalize()}",
                "disabled": disabled,
                "busy": is_loading,
            }
        )
    return buttons


def format_message(message: Message) -> Dict[str, object]:
    if message.kind == KIND_ERROR:
        style_key = "error"
        text = f"Error: {message.content}"
    elif message.role == ROLE_USER:
        style_key = "user"
        text = message.content
    else:
        style_key = "assistant"
        text = message.content

    show_image = message.kind == KIND_IMAGE and bool(message.image_url)
    return {
        "text": text,
        "image_url": message.image_url if show_image else None,
        "alt": message.content if show_image else "",
        "style": dict(MESSAGE_STYLES[style_key]),
        "aria_label": f"{message.role} message",
    }
