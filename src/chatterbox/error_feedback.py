from typing import Dict, Optional

_GUIDANCE = {
    "API key not configured": "Open Settings and save an OpenAI API key, then retry.",
    "Invalid token": "Reload the editor to refresh the session token.",
    "Security token missing": "Reload the editor to refresh the session token.",
    "Insufficient permissions": "Ask an administrator for edit access to this content.",
    "Prompt is required": "Enter a prompt before generating.",
}


def build_error_feedback(last_error: Optional[str]) -> Dict[str, str]:
    message = str(last_error or "").strip()
    if not message:
        return {"level": "none", "title": "", "message": "", "guidance": ""}

    return {
        "level": "error",
        "title": "Generation Failed",
        "message": message,
        "guidance": _GUIDANCE.get(message, "Adjust the prompt or check the settings, then retry."),
    }
