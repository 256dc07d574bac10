# SPDX-License-Identifier: MIT
"""
histscope - scope-cycling fuzzy search over shell command history.

Cycles the search between the current session, directory, machine and
everywhere, streaming matching history entries into an interactive picker.
"""

from histscope._version import __version__

__all__ = ["__version__"]
