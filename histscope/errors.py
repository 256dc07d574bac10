# SPDX-License-Identifier: MIT
"""histscope error hierarchy.

The CLI catches HistscopeError at the process boundary; everything else
propagates as a crash.

    HistscopeError
    ├── HistoryStoreError     # store.py: unreadable or malformed history
    └── ChannelClosedError    # producer.py: send/close after close
"""


class HistscopeError(Exception):
    """Base class for all histscope errors."""


class HistoryStoreError(HistscopeError):
    """The history store could not be opened or queried."""


class ChannelClosedError(HistscopeError):
    """An entry channel was used after it was closed."""
