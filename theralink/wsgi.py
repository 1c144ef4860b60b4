"""WSGI entrypoint used by ``flask --app theralink.wsgi`` and hosted deployments."""
from __future__ import annotations
import os

from theralink.app import create_app

app = create_app(os.getenv("THERALINK_CONFIG"))
