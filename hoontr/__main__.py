"""
Hoontr Module Entry Point
==========================

Allows running the Hoontr CLI via: python -m hoontr
"""

from hoontr.cli import main

if __name__ == "__main__":
    main()
