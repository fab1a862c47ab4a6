from __future__ import annotations

from typing import Callable

from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt

from gmb_studio.core.errors import GoogleAPIError


def _is_unauthorized(exc: BaseException) -> bool:
    return isinstance(exc, GoogleAPIError) and exc.is_unauthorized


def refresh_once(on_unauthorized: Callable[[], None]) -> Retrying:
    """Retry a Google call exactly once after a 401, running ``on_unauthorized`` in between.

    Any other error, and a second 401, propagate unchanged.
    """

    def _before_retry(state: RetryCallState) -> None:
        on_unauthorized()

    return Retrying(
        stop=stop_after_attempt(2),
        retry=retry_if_exception(_is_unauthorized),
        before_sleep=_before_retry,
        reraise=True,
    )
