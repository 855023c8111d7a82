"""
Services module for external integrations in the voice relay.

Key components:
- scheduling: The SchedulingBackend protocol the tool executor depends on.
- graph_calendar: Microsoft Graph implementation reading the calendar view,
  creating events and sending confirmation emails.
- token_cache: Process-wide access-token cache backed by MSAL client credentials.
- websocket_client: RelayClient for talking to the relay over the browser protocol.

Usage examples:
```python
from voice_relay.services.graph_calendar import GraphCalendarBackend
from voice_relay.services.token_cache import AccessTokenCache, msal_token_acquirer

token_cache = AccessTokenCache(msal_token_acquirer(tenant_id, client_id, client_secret))
backend = GraphCalendarBackend("frontdesk@example.com", token_cache)
```
"""
