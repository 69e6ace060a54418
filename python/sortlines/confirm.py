"""
Single-shot confirmation dialog.

The gate sends one render request to a UI surface and waits for the surface
to post back a decision. Resize messages may arrive first; they are applied
and do not resolve the gate. The first decision closes the surface and
resolves the gate; anything posted afterwards is ignored.
"""

import asyncio
from typing import Any

import structlog
from pydantic import ValidationError

from sortlines.host import UISurface
from sortlines.models import RenderRequest, UIMessage

logger = structlog.get_logger(__name__)


async def confirm(ui: UISurface, amount: int) -> bool:
    loop = asyncio.get_running_loop()
    decision: asyncio.Future = loop.create_future()

    def on_message(raw: Any):
        if decision.done():
            return
        try:
            message = raw if isinstance(raw, UIMessage) else UIMessage.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed UI message: {e}")
            return

        # Surface errors fail the gate instead of leaving it pending
        try:
            if message.is_resize:
                ui.resize(message.width, message.height)
            if message.is_decision:
                ui.close()
                decision.set_result(message.confirm)
        except Exception as e:
            decision.set_exception(e)

    ui.on_message = on_message
    ui.show(RenderRequest(amount=amount, html=perform_action_html(amount)))

    result = await decision
    logger.info("Confirmation answered", amount=amount, confirmed=result)
    return result


def perform_action_html(amount: int) -> str:
    yes_message = "Yes, Do It! 🤪" if amount > 10 else "Yep!"
    no_message = "Nevermind 😵" if amount > 10 else "Nevermind"
    return f"""
<script>
const sendMessage = (value) => parent.postMessage({{pluginMessage: value}}, "*");
</script>
<style>
* {{
    font-family: Inter, sans-serif;
    font-size: 20px;
}}
body {{
    margin: 0;
}}
p {{
    margin: 0;
    padding-bottom: 20px;
    padding-left: 20px;
    padding-right: 20px;
}}
p:first-child {{
    padding-top: 20px;
}}
button {{
    cursor: hand;
    font-weight: bold;
    border: 0;
    line-height: 20px;
    padding: 12px 23px;
}}
.yah {{
    background: #6aa56c;
    color: white;
    border-radius: 100px;
}}
.yah:hover {{
    background-color: #436944;
}}
.nah {{
    background: none;
    color: #383838;
    padding-left: 18px;
}}
.nah:hover {{
    text-decoration: underline;
}}
</style>
<div id="cool-ui">
    <p>This will sort {amount:,} text components.</p>
    <p>Are you sure you want to do that?</p>
    <p>
        <button onclick="sendMessage({{confirm: true}})" class="yah">{yes_message}</button>
        <button onclick="sendMessage({{confirm: false}})" class="nah">{no_message}</button>
    </p>
</div>
<script>
const cool = document.querySelector("#cool-ui");
sendMessage({{width: cool.offsetWidth, height: cool.offsetHeight}})
</script>
"""
