from __future__ import annotations

from notemancy_api.app import create_app

app = create_app()
