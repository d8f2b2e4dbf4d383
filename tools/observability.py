"""Observability helpers for instrumenting stylist service calls."""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Callable, ParamSpec, TypeVar

from pydantic import BaseModel, ValidationError

from stylist_app.logging_config import CORRELATION_ID, correlation_context, log_event

LOGGER = logging.getLogger(__name__)
P = ParamSpec("P")
R = TypeVar("R")


def _preview_kwargs(kwargs: dict, max_keys: int = 6) -> dict:
    preview = dict(list(kwargs.items())[:max_keys])
    if len(kwargs) > max_keys:
        preview["truncated"] = True
    return preview


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def instrument_call(
    call_name: str,
    input_model: type[BaseModel] | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Wrap a callable to emit structured start/finish logs with durations.

    Calls join the active correlation id or get a fresh one for their duration.
    When ``input_model`` is given the callable must be invoked with keyword
    arguments only; they are validated against the model before the call and a
    ``call_validation_failed`` event is logged on error.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            if input_model and args:
                raise TypeError(f"{call_name} accepts keyword arguments only")

            with correlation_context(CORRELATION_ID.get()):
                start = time.perf_counter()
                if input_model:
                    try:
                        kwargs = input_model.model_validate(kwargs).model_dump()
                    except ValidationError as exc:
                        log_event(
                            LOGGER,
                            logging.WARNING,
                            "call_validation_failed",
                            call=call_name,
                            errors=exc.errors(include_url=False),
                        )
                        raise

                log_event(LOGGER, logging.INFO, "call_started", call=call_name, kwargs=_preview_kwargs(kwargs))
                try:
                    result = func(*args, **kwargs)
                except Exception:
                    log_event(
                        LOGGER,
                        logging.ERROR,
                        "call_failed",
                        call=call_name,
                        duration_ms=_elapsed_ms(start),
                        exc_info=True,
                    )
                    raise
                log_event(LOGGER, logging.INFO, "call_completed", call=call_name, duration_ms=_elapsed_ms(start))
                return result

        return wrapper

    return decorator


__all__ = ["instrument_call"]
