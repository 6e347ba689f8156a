"""
Utility functions for the AWS Reconciler.
"""

import functools
import json
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, Iterator, TypeVar, Union, cast
from urllib.parse import unquote

from botocore.exceptions import BotoCoreError, ClientError

from .reconciler.errors import RemoteError


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Sets up logging configuration for the reconciler.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("reconciler")
    logger.setLevel(getattr(logging, log_level.upper()))

    # Prevent duplicate handlers
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


logger = setup_logging()

F = TypeVar("F", bound=Callable[..., Any])


def error_code(error: BaseException) -> str:
    """Return the AWS error code of a ClientError, or an empty string."""
    if isinstance(error, ClientError):
        return str(error.response.get("Error", {}).get("Code", ""))
    return ""


def is_not_found(error: BaseException, codes: Iterable[str]) -> bool:
    """True if the error is a ClientError carrying one of the given "not found" codes."""
    return error_code(error) in set(codes)


def remote_error_handler(context: str) -> Callable[[F], F]:
    """
    Decorator for consistent error handling and logging around AWS API calls.

    Catches botocore ClientError and BotoCoreError, logs them with the call-site
    context and re-raises them as RemoteError. Errors that are already
    RemoteError pass through untouched so nested helpers keep the innermost
    context.

    Args:
        context: Human-readable description of the call site, e.g. "CreateVpc"
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except RemoteError:
                raise
            except ClientError as e:
                logger.error(f"AWS ClientError in {context}: {e}")
                raise RemoteError(context, e) from e
            except BotoCoreError as e:
                logger.error(f"AWS client failure in {context}: {e}")
                raise RemoteError(context, e) from e

        return cast(F, wrapper)

    return decorator


@contextmanager
def partial_outputs(context: str, outputs: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    """
    Attach outputs collected so far to any AWS failure raised inside the block.

    Operations that create a resource and then configure it in follow-up calls
    use this so the id of the created resource is not lost when a later call
    fails.
    """
    try:
        yield outputs
    except RemoteError as e:
        e.outputs.update(outputs)
        raise
    except (ClientError, BotoCoreError) as e:
        logger.error(f"AWS error in {context} after partial success: {e}")
        raise RemoteError(context, e, dict(outputs)) from e


def parse_policy_document(policy: Union[str, Dict[str, Any], None]) -> Dict[str, Any]:
    """
    Parses a policy document returned by AWS into a Python dict.

    IAM returns policy text URL-encoded; other services return plain JSON text;
    boto3 sometimes decodes the document already.

    Args:
        policy: Raw policy document

    Returns:
        Parsed policy document (empty dict for None)

    Raises:
        ValueError: If the policy text is not a JSON object
    """
    if policy is None:
        return {}
    if isinstance(policy, dict):
        return policy
    text = policy.strip()
    if text.startswith("%7B") or text.startswith("%7b"):
        text = unquote(text)
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in policy document: {e}")
    if not isinstance(document, dict):
        raise ValueError("Policy document did not parse to a dictionary.")
    return document


def dump_policy_document(policy: Dict[str, Any]) -> str:
    """Serialize a policy document for an AWS API call."""
    return json.dumps(policy, separators=(",", ":"), sort_keys=True)
