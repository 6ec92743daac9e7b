# ns_guard/engine.py
"""
Namespace emptiness check.

Counts the workload resources in a namespace, one kind at a time, and turns the
result into either a clear tally or a denial message. A kind whose count cannot
be determined blocks deletion just like a non-empty kind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Sequence, Tuple

logger = logging.getLogger(__name__)

BYPASS_ANNOTATION_KEY = "k8s-namespace-guard.admission.yahoo.com/allow-cascade-delete"

KINDS: Tuple[str, ...] = (
    "pods",
    "services",
    "replicasets",
    "deployments",
    "statefulsets",
    "daemonsets",
    "ingresses",
    "horizontalpodautoscalers",
)

Counter = Callable[[str], int]


@dataclass(frozen=True)
class ResourceTally:
    non_empty: List[Tuple[str, int]] = field(default_factory=list)
    errors: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def clear(self) -> bool:
        return not self.non_empty and not self.errors

    def denial_message(self, namespace: str) -> str:
        msg = ""
        if self.non_empty:
            found = " ".join(f"{kind}({count})" for kind, count in self.non_empty)
            msg += (
                f"The namespace {namespace} you are trying to remove contains one or more "
                f"of these resources: [{found}]. Please delete them and try again."
            )
        if self.errors:
            errs = " ".join(error for _, error in self.errors)
            msg += (
                f"The following error(s) occurred while validating the DELETE operation "
                f"on the namespace {namespace}: [{errs}]."
            )
        if msg:
            msg += (
                f" WARNING: If you know what you are doing, run "
                f"`kubectl annotate namespace {namespace} {BYPASS_ANNOTATION_KEY}=true` "
                f"to bypass this policy check."
            )
        return msg


class DecisionEngine:
    """
    Evaluates a namespace against a fixed table of (kind, counter) pairs.

    Every counter is called, in table order, even after one fails or reports
    resources, so the denial message names all offending kinds.
    """

    def __init__(self, counters: Sequence[Tuple[str, Counter]]):
        self.counters = tuple(counters)

    def evaluate(self, namespace: str) -> ResourceTally:
        tally = ResourceTally()
        for kind, counter in self.counters:
            try:
                num = counter(namespace)
            except Exception as e:
                logger.debug("Listing %s in namespace %s failed: %s", kind, namespace, e)
                tally.errors.append((kind, f"error listing {kind}, {e}"))
                continue
            if num > 0:
                tally.non_empty.append((kind, num))
        return tally
