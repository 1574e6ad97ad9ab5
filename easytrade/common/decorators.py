"""Command decorators for session preconditions and result shaping.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

from easytrade.common.exceptions import TradeClientError, TwoFactorRequired

logger = logging.getLogger(__name__)


def requires_session(
    guard_attr: str = "guard",
) -> Callable:
    """Decorator that lets a command run only while a session exists.

    Args:
        guard_attr: Name of the attribute on ``self`` holding the SessionGuard

    Returns:
        Decorated coroutine that raises NotLoggedIn (or RecoveryExhausted when
        reconnection gave up) before touching the remote service
    """

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable:
        @wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            getattr(self, guard_attr).ensure_session()
            return await func(self, *args, **kwargs)

        return wrapper

    return decorator


def error_result(error: Exception) -> dict[str, Any]:
    """Convert an exception into the failure half of the result shape."""
    result: dict[str, Any] = {
        "success": False,
        "error": str(error) or error.__class__.__name__,
        "error_type": error.__class__.__name__,
    }
    if isinstance(error, TwoFactorRequired):
        result["needs_two_factor"] = True
    return result


def command_result(func: Callable[..., Awaitable[dict[str, Any]]]) -> Callable:
    """Decorator that turns every outcome of a command into a result dict.

    Successful commands return their own payload with ``success`` set to
    True. Expected failures are logged at warning level, anything else with a
    traceback. Nothing propagates to the caller.
    """

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> dict[str, Any]:
        try:
            payload = await func(*args, **kwargs)
        except TradeClientError as e:
            logger.warning("Command %s failed: %s", func.__name__, e)
            return error_result(e)
        except Exception as e:
            logger.exception("Command %s crashed", func.__name__)
            return error_result(e)
        return {"success": True, **(payload or {})}

    return wrapper
