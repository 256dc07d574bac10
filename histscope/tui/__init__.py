# SPDX-License-Identifier: MIT
"""Textual picker UI for histscope."""
