"""NiceGUI chat interface with streaming replies."""

import os
from datetime import datetime

from nicegui import app, ui

from src.client.session import HEALTH_CHECK_INTERVAL, ChatSessionController
from src.models.schemas import ChatMessage

API_BASE_URL = os.getenv("API_BASE_URL") or f"http://127.0.0.1:{os.getenv('PORT', '8000')}"

CUSTOM_CSS = """
<style>
    body { background: #f5f5f5; }
    .chat-shell { background: white; border-radius: 12px; box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1); }
    .chat-header { background: #1f2937; }
    .bubble-user { background: #2563eb; color: white; border-radius: 18px 18px 4px 18px; }
    .bubble-assistant { background: #f3f4f6; color: #1f2937; border-radius: 18px 18px 18px 4px; }
    .bubble-assistant p { margin: 0.25rem 0; }
    .health-dot { width: 10px; height: 10px; border-radius: 50%; }
</style>
"""


def _format_time(timestamp: int | None) -> str:
    if timestamp is None:
        return ""
    return datetime.fromtimestamp(timestamp / 1000).strftime("%I:%M %p")


@ui.page("/")
def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)

    messages_container: ui.column
    input_field: ui.textarea
    send_btn: ui.button
    stop_btn: ui.button
    health_dot: ui.element
    bubbles: dict[str, ui.markdown] = {}
    rendered: dict[str, str] = {}

    def render_message(msg: ChatMessage) -> None:
        is_user = msg.role == "user"
        align = "justify-end" if is_user else "justify-start"
        bubble = "bubble-user" if is_user else "bubble-assistant"

        with ui.row().classes(f"w-full {align}"):
            with ui.column().classes("max-w-[75%] gap-1"):
                with ui.element("div").classes(f"px-4 py-3 {bubble}"):
                    if not is_user and not msg.content and msg.id == controller.streaming_message_id:
                        ui.spinner("dots", size="lg")
                    else:
                        bubbles[msg.id] = ui.markdown(msg.content).classes("text-sm")
                ui.label(_format_time(msg.timestamp)).classes(
                    f"text-[10px] text-gray-400 {'self-end' if is_user else 'self-start'}"
                )

    def rebuild() -> None:
        bubbles.clear()
        rendered.clear()
        messages_container.clear()
        with messages_container:
            messages = controller.store.messages
            if not messages:
                with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                    ui.icon("forum").classes("text-5xl text-gray-300")
                    ui.label("Start a conversation").classes("text-lg text-gray-400")
            for msg in messages:
                render_message(msg)
                rendered[msg.id] = msg.content

    def refresh() -> None:
        """Update in place while only contents change; rebuild otherwise."""
        messages = controller.store.messages
        if [m.id for m in messages] != list(rendered) or any(
            m.id not in bubbles and m.content for m in messages
        ):
            rebuild()
        else:
            for msg in messages:
                if rendered[msg.id] != msg.content:
                    bubbles[msg.id].set_content(msg.content)
                    rendered[msg.id] = msg.content

        streaming = controller.is_streaming
        send_btn.set_enabled(not streaming)
        stop_btn.set_visibility(streaming)

    controller = ChatSessionController(
        app.storage.user,
        base_url=API_BASE_URL,
        on_change=lambda: refresh(),
    )

    async def send_message() -> None:
        text = input_field.value or ""
        if not text.strip() or controller.is_streaming:
            return
        input_field.value = ""
        await controller.send_message(text)
        if controller.error:
            ui.notify(controller.error, type="negative")

    async def update_health() -> None:
        healthy = await controller.check_health()
        health_dot.style(f"background: {'#22c55e' if healthy else '#ef4444'}")
        health_dot.props(f'title="{"API reachable" if healthy else "API unreachable"}"')

    def confirm_reset() -> None:
        controller.reset_chat()
        reset_dialog.close()

    with ui.dialog() as reset_dialog, ui.card():
        ui.label("Clear all messages? This cannot be undone.")
        with ui.row().classes("w-full justify-end"):
            ui.button("Cancel", on_click=reset_dialog.close).props("flat")
            ui.button("Clear", on_click=confirm_reset).props("color=negative")

    # === UI Layout ===
    with (
        ui.element("div").classes("w-full min-h-screen p-4 md:p-8"),
        ui.column().classes("w-full max-w-3xl mx-auto chat-shell").style(
            "height: calc(100vh - 4rem)"
        ),
    ):
        with ui.row().classes("w-full chat-header px-5 py-4 items-center justify-between"):
            with ui.row().classes("items-center gap-3"):
                ui.icon("smart_toy").classes("text-white text-3xl")
                ui.label("Chat").classes("text-lg font-semibold text-white")
                health_dot = ui.element("div").classes("health-dot").style("background: #9ca3af")
            ui.button(icon="delete_sweep", on_click=reset_dialog.open).props(
                "flat round color=white"
            )

        with (
            ui.scroll_area().classes("flex-grow w-full bg-gray-50"),
            ui.column().classes("w-full p-5"),
        ):
            messages_container = ui.column().classes("w-full gap-4")

        with ui.row().classes("w-full p-4 gap-3 items-end bg-white border-t"):
            input_field = (
                ui.textarea(placeholder="Type a message...")
                .props("autogrow outlined dense rows=1")
                .classes("flex-grow")
                .on("keydown.enter.prevent", send_message)
            )
            stop_btn = ui.button(icon="stop", on_click=controller.stop_streaming).props(
                "round unelevated color=negative"
            )
            send_btn = ui.button(icon="send", on_click=send_message).props("round unelevated")

    rebuild()
    refresh()
    ui.timer(HEALTH_CHECK_INTERVAL, update_health)
    ui.timer(0.1, update_health, once=True)
    ui.context.client.on_disconnect(controller.aclose)
