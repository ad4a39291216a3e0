"""FastAPI operator API for Shopfloor webhooks.

Exposes triggers, test deliveries, the dead letter queue and endpoint
health to operator tooling.

Example:
    ```python
    import uvicorn
    from shopfloor.api import create_app

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8000)
    ```

Or run directly:
    ```bash
    uvicorn shopfloor.api:create_app --factory
    ```
"""

from .app import create_app
from .router import router

__all__ = [
    "create_app",
    "router",
]
