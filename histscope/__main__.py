# SPDX-License-Identifier: MIT
import sys

from histscope.cli import main

sys.exit(main())
