"""
Readiness Poller: blocks until a cluster or node pool reports RUNNING.
"""
import threading
import time
from collections.abc import Callable
from typing import Any

from tenacity import (
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_delay,
    stop_never,
    stop_when_event_set,
    wait_fixed,
)

from .builders import cluster_path, node_pool_path
from .core import POLL_INTERVAL, STATUS_RUNNING
from .errors import REMOTE_ERRORS, PollCancelled, PollError, PollTimeout
from .logger import logger
from .schemas.cluster import ClusterSpec


def _wait_until_running(
    fetch_status: Callable[[], str],
    kind: str,
    name: str,
    *,
    interval: float,
    timeout: float | None,
    cancel: threading.Event | None,
    sleep: Callable[[float], Any] | None,
) -> None:
    last_status: str | None = None

    def poll() -> str:
        nonlocal last_status
        if cancel is not None and cancel.is_set():
            raise PollCancelled(
                f"Wait for {kind.lower()} {name} cancelled", last_status
            )
        status = fetch_status()
        # Only report transitions, not every poll
        if status != STATUS_RUNNING and status != last_status:
            logger.info(f"{status.lower()} {kind.lower()} {name}")
        last_status = status
        return status

    stop = stop_never if timeout is None else stop_after_delay(timeout)
    if cancel is not None:
        stop = stop | stop_when_event_set(cancel)

    if sleep is None:
        # cancel.wait returns as soon as the event is set
        sleep = cancel.wait if cancel is not None else time.sleep

    retryer = Retrying(
        retry=retry_if_result(lambda status: status != STATUS_RUNNING),
        wait=wait_fixed(interval),
        stop=stop,
        sleep=sleep,
    )

    try:
        retryer(poll)
    except RetryError as e:
        if cancel is not None and cancel.is_set():
            raise PollCancelled(
                f"Wait for {kind.lower()} {name} cancelled", last_status
            ) from e
        raise PollTimeout(
            f"{kind} {name} not running after {timeout}s (last status {last_status})",
            last_status,
        ) from e
    except REMOTE_ERRORS as e:
        raise PollError(f"Failed to get status of {kind.lower()} {name}: {e}") from e

    logger.info(f"{kind} {name} is running")


def wait_for_cluster(
    client: Any,
    spec: ClusterSpec,
    *,
    interval: float = POLL_INTERVAL,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
    sleep: Callable[[float], Any] | None = None,
) -> None:
    """
    Polls the cluster every `interval` seconds until its status is RUNNING.

    Raises PollError as soon as a status fetch fails, PollTimeout once
    `timeout` seconds have elapsed and PollCancelled once `cancel` is set.
    """
    name = cluster_path(spec)

    def fetch_status() -> str:
        return str(client.get_cluster(name=name).status.name)

    _wait_until_running(
        fetch_status,
        "Cluster",
        spec.name,
        interval=interval,
        timeout=timeout,
        cancel=cancel,
        sleep=sleep,
    )


def wait_for_node_pool(
    client: Any,
    spec: ClusterSpec,
    *,
    interval: float = POLL_INTERVAL,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
    sleep: Callable[[float], Any] | None = None,
) -> None:
    """Same as wait_for_cluster, for the spec's node pool."""
    name = node_pool_path(spec)

    def fetch_status() -> str:
        return str(client.get_node_pool(name=name).status.name)

    _wait_until_running(
        fetch_status,
        "Node pool",
        spec.node_pool_id,
        interval=interval,
        timeout=timeout,
        cancel=cancel,
        sleep=sleep,
    )
