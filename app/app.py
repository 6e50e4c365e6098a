from pathlib import Path
import asyncio
import logging
import sys
import uuid

import streamlit as st

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from chatterbox.asset_store import AssetStore  # noqa: E402
from chatterbox.document_mutator import DocumentMutator  # noqa: E402
from chatterbox.document_tree import (  # noqa: E402
    IMAGE_BLOCK,
    PARAGRAPH_BLOCK,
    DocumentTree,
    create_block,
)
from chatterbox.editor_policy import format_message, get_action_buttons  # noqa: E402
from chatterbox.error_feedback import build_error_feedback  # noqa: E402
from chatterbox.orchestrator import GenerationSession  # noqa: E402
from chatterbox.provider_client import OpenAIGenerationClient  # noqa: E402
from chatterbox.relay_gateway import CallerContext, RelayGateway  # noqa: E402
from chatterbox.relay_transport import LocalRelayTransport  # noqa: E402
from chatterbox.security_tokens import SecurityTokens  # noqa: E402
from chatterbox.settings_store import (  # noqa: E402
    IMAGE_SIZES,
    SettingsStore,
    mask_api_key,
)

DATA_DIR = ROOT_DIR / ".chatterbox_data"
NO_SELECTION = "(none)"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@st.cache_resource
def get_settings_store() -> SettingsStore:
    return SettingsStore(DATA_DIR)


@st.cache_resource
def get_asset_store() -> AssetStore:
    return AssetStore(DATA_DIR / "media")


@st.cache_resource
def get_security_tokens() -> SecurityTokens:
    return SecurityTokens()


@st.cache_resource
def get_relay_gateway() -> RelayGateway:
    provider = OpenAIGenerationClient(asset_store=get_asset_store())
    return RelayGateway(
        tokens=get_security_tokens(),
        settings_store=get_settings_store(),
        provider=provider,
    )


def build_generation_session(session_id: str, document: DocumentTree) -> GenerationSession:
    caller = CallerContext(
        session_id=session_id,
        nonce=get_security_tokens().issue(session_id),
    )
    transport = LocalRelayTransport(get_relay_gateway(), caller)
    return GenerationSession(transport=transport, mutator=DocumentMutator(document))


def ensure_state() -> None:
    if "session_id" not in st.session_state:
        st.session_state.session_id = uuid.uuid4().hex
    if "document" not in st.session_state:
        st.session_state.document = DocumentTree(
            [create_block(PARAGRAPH_BLOCK, {"content": "Start writing, or ask Chatterbox for a draft."})]
        )
    if "generation_session" not in st.session_state:
        st.session_state.generation_session = build_generation_session(
            st.session_state.session_id, st.session_state.document
        )
    if "prompt_input" not in st.session_state:
        st.session_state.prompt_input = ""
    st.session_state.generation_session.open_panel()


def run_generation(kind: str) -> None:
    session: GenerationSession = st.session_state.generation_session
    session.set_prompt(st.session_state.prompt_input)
    if not session.can_submit():
        return
    with st.spinner(f"Generating {kind}..."):
        asyncio.run(session.submit(kind))
    st.session_state.prompt_input = session.current_prompt


def select_block_from_widget() -> None:
    document: DocumentTree = st.session_state.document
    choice = st.session_state.block_selection
    if choice == NO_SELECTION:
        document.clear_selection()
    else:
        document.select_block(choice)


def render_settings() -> None:
    store = get_settings_store()
    settings = store.load()
    st.markdown("### Chatterbox Settings")
    with st.form("chatterbox_settings"):
        api_key = st.text_input(
            "OpenAI API Key",
            value="",
            type="password",
            help="Leave empty to keep the stored key.",
        )
        model = st.text_input("Model", value=settings.model)
        image_size = st.selectbox(
            "Image size",
            options=list(IMAGE_SIZES),
            index=IMAGE_SIZES.index(settings.image_size),
        )
        store_images = st.checkbox(
            "Store generated images in the media library",
            value=settings.store_images,
        )
        submitted = st.form_submit_button("Save Settings")
    if submitted:
        store.save(
            api_key=api_key if api_key.strip() else None,
            model=model,
            image_size=image_size,
            store_images=store_images,
        )
        st.success("Settings saved.")
        settings = store.load()
    st.caption(f"API key: {mask_api_key(settings.api_key)}")


def render_document() -> None:
    document: DocumentTree = st.session_state.document
    st.subheader("Document")

    blocks = list(document.iter_blocks())
    options = [NO_SELECTION] + [block.client_id for block in blocks]
    labels = {NO_SELECTION: "No block selected (insert new)"}
    for index, block in enumerate(blocks, start=1):
        preview = str(block.attributes.get("content") or block.attributes.get("caption") or "")
        labels[block.client_id] = f"{index}. {block.name} {preview[:40]}".strip()

    selected = document.selected_client_id if document.selected_client_id in options else NO_SELECTION
    st.session_state.block_selection = selected
    st.selectbox(
        "Selected block",
        options=options,
        format_func=lambda value: labels.get(value, value),
        key="block_selection",
        on_change=select_block_from_widget,
    )

    for block in blocks:
        marker = "▶ " if block.client_id == document.selected_client_id else ""
        if block.name == IMAGE_BLOCK:
            st.image(block.attributes.get("url", ""), caption=f"{marker}{block.attributes.get('caption', '')}")
        else:
            st.markdown(f"{marker}{block.attributes.get('content', '')}")

    with st.expander("Block JSON", expanded=False):
        st.json(document.to_dicts())


def render_chat() -> None:
    session: GenerationSession = st.session_state.generation_session
    st.subheader("Chatterbox AI")

    feedback = build_error_feedback(session.last_error)
    if feedback["level"] == "error":
        st.error(f"**{feedback['title']}**: {feedback['message']}")
        st.caption(feedback["guidance"])

    for message in session.transcript.all():
        view = format_message(message)
        with st.chat_message(message.role):
            if view["image_url"]:
                st.image(view["image_url"], caption=view["alt"])
            elif message.kind == "error":
                st.error(view["text"])
            else:
                st.write(view["text"])

    st.text_area(
        "Enter your prompt",
        key="prompt_input",
        placeholder="Type your prompt here...",
        disabled=session.is_loading,
        height=100,
    )
    columns = st.columns(2)
    for column, button in zip(columns, get_action_buttons(st.session_state.prompt_input, session.is_loading)):
        column.button(
            button["label"],
            key=f"generate_{button['kind']}",
            disabled=button["disabled"],
            on_click=run_generation,
            args=(button["kind"],),
            use_container_width=True,
        )


st.set_page_config(page_title="Chatterbox", layout="wide")
ensure_state()

with st.sidebar:
    render_settings()

editor_col, chat_col = st.columns([3, 2])
with editor_col:
    render_document()
with chat_col:
    render_chat()
