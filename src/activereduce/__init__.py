"""
activereduce - Importance-Weighted Active Learning Reductions
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Online active learning layers that wrap a base learner and decide, per
example, whether a label is worth acquiring. Queried examples are
reweighted by the inverse query probability so that learning under
partial labeling stays unbiased.

Basic usage:
    >>> from activereduce import build_learner, OnlineDriver
    >>> learner, context = build_learner({"active": True, "simulation": True})
    >>> driver = OnlineDriver(learner, context)
    >>> driver.run_lines(["1 | a:1 b:0.5", "-1 | c:1"])

"""

__version__ = "0.1.0"
__author__ = "activereduce developers"

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .pipeline import OnlineDriver
    from .reductions import build_learner

__all__ = [
    "OnlineDriver",
    "build_learner",
    "__version__",
]


def __getattr__(name):
    if name == "OnlineDriver":
        from .pipeline import OnlineDriver
        return OnlineDriver
    if name == "build_learner":
        from .reductions import build_learner
        return build_learner
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def get_version() -> str:
    """Return the current version of activereduce."""
    return __version__
