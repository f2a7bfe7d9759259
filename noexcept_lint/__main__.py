#!/usr/bin/env python3
"""
noexcept_lint/__main__.py
=========================

Entry point for ``python -m noexcept_lint``.

Usage
-----
    cppcheck --dump src/widget.cpp
    python -m noexcept_lint src/widget.cpp.dump --output pretty
    python -m noexcept_lint src/*.dump --fix
"""

import sys

from noexcept_lint.checkers import main

if __name__ == "__main__":
    sys.exit(main())
