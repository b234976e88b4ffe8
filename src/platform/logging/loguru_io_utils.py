from inspect import FullArgSpec, getfile, getfullargspec, getsourcelines
from os.path import basename
import re
from time import time
from typing import Any, Callable

from src.platform.logging.loguru_io_config import (
    MASK,
    SENSITIVE_KEYWORDS,
    call_depth_var,
    chain_start_time_var,
)


_MAX_CONTENT_LENGTH = 1000

# key='value' / key="value" / key: 'value' / "key": "value" inside repr() output
_SENSITIVE_PATTERN = re.compile(
    r"""(['"]?)\b(%s)\b\1(\s*[=:]\s*)(['"])[^'"]*\4""" % '|'.join(sorted(SENSITIVE_KEYWORDS)),
    re.IGNORECASE,
)


def get_chain_start_time() -> float:
    if not (start_time := chain_start_time_var.get()):
        start_time = time()
        chain_start_time_var.set(start_time)
    return start_time


def build_call_target_func_path(func: Callable[..., Any]) -> str:
    target = getattr(func, '__func__', func)
    try:
        lineno = getsourcelines(target)[1]
        filename = basename(getfile(target))
    except (OSError, TypeError):
        return func.__qualname__
    return f'{filename}::{func.__qualname__}:{lineno}'


def reset_call_depth() -> None:
    layer = max(call_depth_var.get() - 1, 0)
    call_depth_var.set(layer)
    if not layer:
        chain_start_time_var.set(0)


def normalize_args_kwargs(
    func: Callable[..., Any], *args: Any, **kwargs: Any
) -> tuple[tuple[Any, ...], dict[Any, Any]]:
    """Drop keyword arguments the wrapped function does not accept."""
    if hasattr(func, '__wrapped__'):
        func = func.__wrapped__  # type: ignore
    full_arg_spec: FullArgSpec = getfullargspec(func)

    if not full_arg_spec.varkw:
        accepted = set(full_arg_spec.args) | set(full_arg_spec.kwonlyargs)
        kwargs = {k: v for k, v in kwargs.items() if k in accepted}

    return args, kwargs


def mask_sensitive(data: Any) -> Any:
    if isinstance(data, str | int | float | bool) or data is None:
        return data
    data_str = repr(data)
    masked = _SENSITIVE_PATTERN.sub(_mask_match, data_str)
    return data if masked == data_str else masked


def _mask_match(match: re.Match[str]) -> str:
    key_quote, key, separator, value_quote = match.groups()
    return f'{key_quote}{key}{key_quote}{separator}{value_quote}{MASK}{value_quote}'


def should_mask_keyword(keyword: Any, value: Any) -> Any:
    return MASK if keyword in SENSITIVE_KEYWORDS else value


def truncate_content(data: Any) -> Any:
    if isinstance(data, str) and len(data) > _MAX_CONTENT_LENGTH:
        return f'{data[:_MAX_CONTENT_LENGTH]}...(+{len(data) - _MAX_CONTENT_LENGTH})'
    return data
