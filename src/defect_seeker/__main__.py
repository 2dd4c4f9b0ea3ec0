"""Module entrypoint.

Allows:
    python -m defect_seeker
"""

from __future__ import annotations

from defect_seeker.server.defect_server import main

if __name__ == "__main__":
    main()
