"""
Handlers for HTTP entry points that do not hold a live audio session.

Key components:
- webhook_handlers: routes telephony platform webhooks, executing batched tool
  calls through the shared ToolExecutor and answering assistant handshakes.

Usage examples:
```python
from voice_relay.handlers.webhook_handlers import handle_webhook

@app.post("/webhook")
async def webhook(request: Request):
    body = await request.json()
    return await handle_webhook(body, tool_executor, settings)
```
"""
