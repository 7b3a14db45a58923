"""Reconciliation engine for remote servers."""

from cirrus.engine.addresses import resolve_address
from cirrus.engine.controller import ServerController
from cirrus.engine.poller import ConvergencePoller, WaitCondition, wait_for_host_keys, wait_for_status

__all__ = [
    "resolve_address",
    "ServerController",
    "ConvergencePoller",
    "WaitCondition",
    "wait_for_host_keys",
    "wait_for_status",
]
