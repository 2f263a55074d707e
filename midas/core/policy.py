"""Failure policies for external call sites."""

from enum import Enum

from pydantic import BaseModel


class FailurePolicy(str, Enum):
    """What to do when a venue call fails."""
    SKIP = "skip"
    ABORT = "abort"


class FailurePolicies(BaseModel):
    """Failure policy per external call site.

    ``skip`` logs the failure and moves on to the next coin pair or venue;
    ``abort`` propagates it to the caller.
    """
    reseller_balance: FailurePolicy = FailurePolicy.ABORT
    reseller_market_data: FailurePolicy = FailurePolicy.ABORT
    reseller_execution: FailurePolicy = FailurePolicy.SKIP
    limit_fill_check: FailurePolicy = FailurePolicy.ABORT
    limit_market_data: FailurePolicy = FailurePolicy.ABORT
    limit_balance: FailurePolicy = FailurePolicy.ABORT
    limit_placement: FailurePolicy = FailurePolicy.ABORT
    limit_cancellation: FailurePolicy = FailurePolicy.ABORT
