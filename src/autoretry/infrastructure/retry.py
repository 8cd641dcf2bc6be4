"""Retry execution using tenacity.

This module drives the retry loop for a resolved policy and provides the
wrapping helpers (``wrap_with_retry``, ``auto_retry``) that bind retry
policies to operations.
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence, Union

from tenacity import (
    RetryCallState,
    Retrying,
    nap,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
)

from autoretry.application.policy_resolver import PolicyResolver
from autoretry.domain.config.retry import RetryBinding
from autoretry.domain.models.policy import Attempt, ResolvedPolicy
from autoretry.domain.models.profile import ProfileName

if TYPE_CHECKING:
    from autoretry.infrastructure.config.config_manager import ConfigManager

logger = logging.getLogger(__name__)

FailureObserver = Callable[[BaseException, int], None]
AttemptObserver = Callable[[Attempt], None]


def _default_sleep(seconds: float) -> None:
    # Resolved at call time so tests can patch tenacity.nap.sleep
    nap.sleep(seconds)


def wait_from_policy(policy: ResolvedPolicy) -> Callable[[RetryCallState], float]:
    """Create a tenacity wait strategy reading delays from a resolved policy"""

    def _wait(retry_state: RetryCallState) -> float:
        index = retry_state.attempt_number - 1
        # tenacity may ask for a wait on the final attempt before checking stop
        if index >= policy.max_retries:
            return 0.0
        return policy.delay_for(index) / 1000.0

    return _wait


class _RetrySession:
    """State of a single ``RetryExecutor.execute`` call"""

    def __init__(
        self,
        operation: Callable[[], Any],
        policy: ResolvedPolicy,
        label: str,
        sleep: Callable[[float], None],
        on_failure: Optional[FailureObserver],
        on_attempt: Optional[AttemptObserver],
    ):
        self.operation = operation
        self.policy = policy
        self.label = label
        self._sleep = sleep
        self.on_failure = on_failure
        self.on_attempt = on_attempt
        self.attempts = 0
        self.last_result: Any = None
        self.pending: Optional[Attempt] = None

    def _next_delay(self, index: int) -> Optional[int]:
        return self.policy.delay_for(index) if index < self.policy.max_retries else None

    def attempt(self) -> Any:
        index = self.attempts
        self.attempts += 1
        try:
            result = self.operation()
        except Exception as e:
            self.pending = Attempt(index, error=e, next_delay_ms=self._next_delay(index))
            raise

        self.last_result = result
        next_delay = None if self.policy.accepts(result) else self._next_delay(index)
        self.pending = Attempt(index, result=result, next_delay_ms=next_delay)
        return result

    def _notify(self, observer: Optional[Callable], *args: Any) -> None:
        # Observer errors are logged and never count as a failed attempt
        if observer is None:
            return
        try:
            observer(*args)
        except Exception as e:
            logger.error(f"{self.label} > Retry observer {_label_for(observer)} failed: {e}")

    def flush_attempt(self) -> None:
        """Report the most recent attempt to the attempt observer once"""
        attempt, self.pending = self.pending, None
        if attempt is not None:
            self._notify(self.on_attempt, attempt)

    def before(self, retry_state: RetryCallState) -> None:
        count = retry_state.attempt_number - 1
        if count > 0:
            logger.info(
                f"{self.label} > Auto retrying operation #{count} "
                f"after delaying for {self.policy.delay_for(count - 1)} ms..."
            )

    def after(self, retry_state: RetryCallState) -> None:
        """Called after every attempt that was not accepted"""
        index = retry_state.attempt_number - 1
        outcome = retry_state.outcome
        if outcome is None:
            return
        if outcome.failed:
            error = outcome.exception()
            logger.error(f"{self.label} > Attempt #{index} failed: {error}")
            self._notify(self.on_failure, error, index)
        else:
            logger.debug(f"{self.label} > Attempt #{index} returned None but null result is not allowed")
        self.flush_attempt()

    def before_sleep(self, retry_state: RetryCallState) -> None:
        delay = self.policy.delay_for(retry_state.attempt_number - 1)
        logger.info(f"{self.label} > Waiting for {delay} ms")

    def sleep(self, seconds: float) -> None:
        try:
            self._sleep(seconds)
        except InterruptedError as e:
            logger.error(f"{self.label} > Delay interrupted: {e}")

    def give_up(self, retry_state: RetryCallState) -> Any:
        logger.warning(
            f"{self.label} > Retried for {retry_state.attempt_number - 1} times "
            f"without success. Giving up now ..."
        )
        return self.last_result


class RetryExecutor:
    """Runs operations under a resolved retry policy

    Exceptions raised by the operation never reach the caller. When retries
    are exhausted the last value the operation returned (possibly None) is
    returned as is.
    """

    def __init__(
        self,
        sleep: Optional[Callable[[float], None]] = None,
        on_failure: Optional[FailureObserver] = None,
        on_attempt: Optional[AttemptObserver] = None,
    ):
        """Initialize executor

        Args:
            sleep: Blocking sleep taking seconds (tenacity's sleep if None)
            on_failure: Called with (error, attempt_index) for every raised error
            on_attempt: Called with an Attempt after every invocation
        """
        self.sleep = sleep or _default_sleep
        self.on_failure = on_failure
        self.on_attempt = on_attempt

    def execute(
        self,
        operation: Callable[[], Any],
        policy: ResolvedPolicy,
        label: str = "operation",
    ) -> Any:
        """Invoke operation until its result is accepted or retries run out

        Args:
            operation: Zero-argument callable
            policy: Resolved retry policy
            label: Operation label used in log lines

        Returns:
            Accepted result, or the last returned result after giving up
        """
        session = _RetrySession(
            operation, policy, label, self.sleep, self.on_failure, self.on_attempt
        )
        retrying = Retrying(
            stop=stop_after_attempt(policy.max_retries + 1),
            wait=wait_from_policy(policy),
            retry=(
                retry_if_exception_type(Exception)
                | retry_if_result(lambda result: not policy.accepts(result))
            ),
            before=session.before,
            after=session.after,
            before_sleep=session.before_sleep,
            sleep=session.sleep,
            retry_error_callback=session.give_up,
        )

        result = retrying(session.attempt)
        session.flush_attempt()
        logger.debug(f"{label} > Result: {result}")
        return result


def _label_for(operation: Callable) -> str:
    return getattr(operation, "__qualname__", None) or getattr(operation, "__name__", None) or repr(operation)


def wrap_with_retry(
    operation: Callable,
    binding: Optional[RetryBinding] = None,
    *,
    resolver: Optional[PolicyResolver] = None,
    executor: Optional[RetryExecutor] = None,
    label: Optional[str] = None,
) -> Callable:
    """Wrap an operation so every call runs under its retry policy

    The policy is resolved on each call, so randomized delays are sampled
    afresh per invocation.

    Args:
        operation: Callable to protect
        binding: Declared retry binding (default profile if None)
        resolver: Policy resolver (a new PolicyResolver if None)
        executor: Retry executor (a new RetryExecutor if None)
        label: Label for log lines (operation's qualified name if None)

    Returns:
        Wrapped callable accepting the same arguments as operation
    """
    resolver = resolver or PolicyResolver()
    executor = executor or RetryExecutor()
    label = label or _label_for(operation)

    @functools.wraps(operation)
    def wrapped(*args: Any, **kwargs: Any) -> Any:
        policy = resolver.resolve(binding, label)
        return executor.execute(functools.partial(operation, *args, **kwargs), policy, label)

    wrapped.retry_binding = binding
    return wrapped


def auto_retry(
    profile: Optional[Union[str, ProfileName, Callable]] = None,
    *,
    nullable: bool = True,
    max_retries: Optional[int] = None,
    delays: Optional[Sequence[int]] = None,
    on_failure: Optional[FailureObserver] = None,
    resolver: Optional[PolicyResolver] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> Callable:
    """Decorator binding a retry profile to a function or method

    Usable bare (``@auto_retry``) for the default profile, or with a profile
    and overrides (``@auto_retry("SLOW", nullable=False)``).

    Raises:
        TypeError: If overrides are given without a profile
    """
    if callable(profile) and not isinstance(profile, str):
        return auto_retry()(profile)

    if profile is None:
        if max_retries is not None or delays is not None or not nullable:
            raise TypeError("auto_retry overrides require a profile")
        binding = None
    else:
        binding = RetryBinding(
            profile=profile, nullable=nullable, max_retries=max_retries, delays=delays
        )

    executor = RetryExecutor(sleep=sleep, on_failure=on_failure)

    def decorator(func: Callable) -> Callable:
        return wrap_with_retry(func, binding, resolver=resolver, executor=executor)

    return decorator


def auto_retry_from_config(
    config_manager: ConfigManager,
    *,
    on_failure: Optional[FailureObserver] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> Callable:
    """Decorator looking the retry binding up in configuration by label"""
    resolver = config_manager.create_resolver()
    executor = RetryExecutor(sleep=sleep, on_failure=on_failure)

    def decorator(func: Callable) -> Callable:
        label = _label_for(func)
        binding = config_manager.get_binding(label)
        return wrap_with_retry(func, binding, resolver=resolver, executor=executor, label=label)

    return decorator
