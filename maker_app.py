import os

import streamlit as st
from dotenv import load_dotenv

from chatwidget.utils.maker_client import MakerClient, MakerClientError

# Load environment variables
load_dotenv()

API_URL = os.getenv("MAKER_API_URL", "http://localhost:3000")
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY")

st.set_page_config(
    page_title="Bot Maker",
    page_icon="💬",
    layout="centered"
)


def initialize_session_state():
    if "client" not in st.session_state:
        st.session_state.client = MakerClient(API_URL, admin_key=ADMIN_API_KEY)
    if "previews" not in st.session_state:
        st.session_state.previews = {}


def display_message(role, content):
    with st.chat_message("user" if role == "user" else "assistant"):
        st.text(content)


def create_bot_form(client: MakerClient):
    with st.form("create-bot", clear_on_submit=True):
        name = st.text_input("Name")
        greeting = st.text_input("Greeting", value="Hi! How can I help you?")
        context = st.text_area("Knowledge base", height=200)
        if st.form_submit_button("Create bot"):
            try:
                bot = client.create_bot(name, greeting, context)
                st.success(f"Bot created: {bot['id']}")
            except MakerClientError as e:
                st.error(e.message)


def edit_bot(client: MakerClient, bot: dict):
    with st.form(f"edit-{bot['id']}"):
        name = st.text_input("Name", value=bot["name"])
        greeting = st.text_input("Greeting", value=bot["greeting"])
        context = st.text_area("Knowledge base", value=bot["context"], height=200)
        save, delete = st.columns(2)
        if save.form_submit_button("Save"):
            try:
                client.update_bot(bot["id"], name=name, greeting=greeting, context=context)
                st.success("Saved")
            except MakerClientError as e:
                st.error(e.message)
        if delete.form_submit_button("Delete"):
            try:
                client.delete_bot(bot["id"])
                st.rerun()
            except MakerClientError as e:
                st.error(e.message)

    st.caption("Embed code")
    st.code(client.embed_snippet(bot["id"]), language="html")


def preview_chat(client: MakerClient, bot: dict):
    history = st.session_state.previews.setdefault(bot["id"], [{"role": "assistant", "content": bot["greeting"]}])
    for message in history:
        display_message(message["role"], message["content"])

    if prompt := st.chat_input("Try your bot..."):
        history.append({"role": "user", "content": prompt})
        try:
            reply = client.chat(bot["id"], prompt)
        except MakerClientError as e:
            reply = e.message
        history.append({"role": "assistant", "content": reply})
        st.rerun()


def main():
    initialize_session_state()
    client = st.session_state.client

    st.title("💬 Bot Maker")
    st.markdown(f"API: `{API_URL}`")

    with st.expander("New bot", expanded=False):
        create_bot_form(client)

    try:
        bots = client.list_bots()
    except MakerClientError as e:
        st.error(e.message)
        return

    if not bots:
        st.info("No bots yet.")
        return

    labels = {f"{bot['name']} ({bot['id'][:8]})": bot for bot in bots}
    selected = labels[st.selectbox("Bot", list(labels))]

    edit_tab, preview_tab = st.tabs(["Settings", "Preview"])
    with edit_tab:
        edit_bot(client, selected)
    with preview_tab:
        preview_chat(client, selected)


if __name__ == "__main__":
    main()
